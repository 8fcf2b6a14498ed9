"""Domain layer for field-service scheduling."""
