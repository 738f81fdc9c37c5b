"""resource module."""
