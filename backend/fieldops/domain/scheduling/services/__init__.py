"""Domain services for job scheduling."""
