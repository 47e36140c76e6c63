"""Authentication for scheduler-facing endpoints."""
