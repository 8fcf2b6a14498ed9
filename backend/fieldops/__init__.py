"""Field-service job scheduling engine."""
