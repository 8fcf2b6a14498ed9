"""Scheduling domain: value objects, repository interfaces and services."""
