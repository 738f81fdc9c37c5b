"""badge module."""
