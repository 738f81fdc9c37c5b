"""economy module."""
