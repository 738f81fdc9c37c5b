"""Database schema layer."""
