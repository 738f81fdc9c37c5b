"""
ORM models. Importing this package registers every table on `Base.metadata`.
"""

from clicker.database.models.save_slot import SaveSlotRecord

__all__ = ["SaveSlotRecord"]
