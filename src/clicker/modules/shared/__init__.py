"""Shared pieces used across feature modules: exceptions, formulas, settings."""
