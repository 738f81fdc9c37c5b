"""upgrade module."""
