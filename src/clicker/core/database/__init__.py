"""
Database infrastructure: engine, sessions, declarative base.
"""

from clicker.core.database.base import Base
from clicker.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    "Base",
    "DatabaseService",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
