"""persistence module."""
