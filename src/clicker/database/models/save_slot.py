"""
SaveSlotRecord: one persisted game per slot name.
Pure schema only.
"""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clicker.core.database.base import Base, TimestampMixin


class SaveSlotRecord(Base, TimestampMixin):
    """
    Schema-only:
    - name: slot name (primary key, e.g. 'brainrotGame')
    - payload: encoded save blob (JSON text, opaque to the database)
    """

    __tablename__ = "save_slots"

    name: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    payload: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SaveSlotRecord name={self.name!r} bytes={len(self.payload or '')}>"
