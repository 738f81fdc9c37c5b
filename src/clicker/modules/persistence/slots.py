"""
Save slots: where encoded save blobs live.

Every backend stores one opaque UTF-8 string per slot name and knows
nothing about its contents. Encoding and validation belong to the codec.

Backends
--------
- MemorySaveSlot   : dict in process memory (tests, ephemeral sessions)
- FileSaveSlot     : one JSON file per slot, replaced atomically
- RedisSaveSlot    : key ``clicker:save:<slot>`` on a redis.asyncio client
- DatabaseSaveSlot : one row per slot in the ``save_slots`` table

Backend failures are wrapped in `SaveSlotError` so callers handle a single
infrastructure exception regardless of the backend in use.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any, AsyncContextManager, Callable, Dict, Optional, Protocol

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clicker.core.exceptions import ConfigurationError, SaveSlotError
from clicker.core.logging.logger import get_logger
from clicker.database.models.save_slot import SaveSlotRecord

logger = get_logger(__name__)

REDIS_KEY_PREFIX = "clicker:save:"

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class SaveSlot(Protocol):
    backend: str
    name: str

    async def read(self) -> Optional[str]:
        """Return the stored blob, or None if the slot is empty."""
        ...

    async def write(self, blob: str) -> None:
        ...

    async def clear(self) -> None:
        ...


# ============================================================================
# Memory
# ============================================================================


class MemorySaveSlot:
    backend = "memory"

    def __init__(self, name: str = "brainrotGame", store: Optional[Dict[str, str]] = None) -> None:
        self.name = name
        self.store: Dict[str, str] = store if store is not None else {}

    async def read(self) -> Optional[str]:
        return self.store.get(self.name)

    async def write(self, blob: str) -> None:
        self.store[self.name] = blob

    async def clear(self) -> None:
        self.store.pop(self.name, None)


# ============================================================================
# File
# ============================================================================


class FileSaveSlot:
    """
    A save file at `path`; the slot name defaults to the file stem.

    Writes go to a temporary sibling first and are moved into place with
    `os.replace`, so a crash mid-write leaves the previous save intact.
    """

    backend = "file"

    def __init__(self, path: Path | str, name: Optional[str] = None) -> None:
        self.path = Path(path)
        self.name = name or self.path.stem

    def _read(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, blob: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(blob, encoding="utf-8")
        os.replace(tmp, self.path)

    def _clear(self) -> None:
        self.path.unlink(missing_ok=True)

    async def read(self) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read)
        except (OSError, UnicodeDecodeError) as exc:
            raise SaveSlotError(self.backend, "read", self.name, exc) from exc

    async def write(self, blob: str) -> None:
        try:
            await asyncio.to_thread(self._write, blob)
        except OSError as exc:
            raise SaveSlotError(self.backend, "write", self.name, exc) from exc

    async def clear(self) -> None:
        try:
            await asyncio.to_thread(self._clear)
        except OSError as exc:
            raise SaveSlotError(self.backend, "clear", self.name, exc) from exc


# ============================================================================
# Redis
# ============================================================================


class RedisSaveSlot:
    """Slot stored as a plain string key on a `redis.asyncio.Redis` client."""

    backend = "redis"

    def __init__(self, client: Any, name: str = "brainrotGame") -> None:
        self.client = client
        self.name = name

    @property
    def key(self) -> str:
        return f"{REDIS_KEY_PREFIX}{self.name}"

    async def read(self) -> Optional[str]:
        try:
            value = await self.client.get(self.key)
        except RedisError as exc:
            raise SaveSlotError(self.backend, "read", self.name, exc) from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def write(self, blob: str) -> None:
        try:
            await self.client.set(self.key, blob)
        except RedisError as exc:
            raise SaveSlotError(self.backend, "write", self.name, exc) from exc

    async def clear(self) -> None:
        try:
            await self.client.delete(self.key)
        except RedisError as exc:
            raise SaveSlotError(self.backend, "clear", self.name, exc) from exc


# ============================================================================
# Database
# ============================================================================


class DatabaseSaveSlot:
    """
    Slot stored as a `SaveSlotRecord` row.

    `transaction_factory` is any zero-argument callable returning an async
    context manager that yields a session and commits on clean exit, such as
    `DatabaseService.get_transaction`.
    """

    backend = "database"

    def __init__(self, transaction_factory: SessionFactory, name: str = "brainrotGame") -> None:
        self.transaction_factory = transaction_factory
        self.name = name

    async def read(self) -> Optional[str]:
        try:
            async with self.transaction_factory() as session:
                record = await session.get(SaveSlotRecord, self.name)
                return record.payload if record is not None else None
        except SQLAlchemyError as exc:
            raise SaveSlotError(self.backend, "read", self.name, exc) from exc

    async def write(self, blob: str) -> None:
        try:
            async with self.transaction_factory() as session:
                record = await session.get(SaveSlotRecord, self.name)
                if record is None:
                    session.add(SaveSlotRecord(name=self.name, payload=blob))
                else:
                    record.payload = blob
        except SQLAlchemyError as exc:
            raise SaveSlotError(self.backend, "write", self.name, exc) from exc

    async def clear(self) -> None:
        try:
            async with self.transaction_factory() as session:
                record = await session.get(SaveSlotRecord, self.name)
                if record is not None:
                    await session.delete(record)
        except SQLAlchemyError as exc:
            raise SaveSlotError(self.backend, "clear", self.name, exc) from exc


# ============================================================================
# Factory
# ============================================================================


def build_save_slot(
    backend: str,
    name: str,
    *,
    path: Path | str | None = None,
    redis_client: Any = None,
    transaction_factory: Optional[SessionFactory] = None,
) -> SaveSlot:
    """
    Build the slot for a configured backend name.

    Raises
    ------
    ConfigurationError
        If the backend is unknown or its dependency was not supplied.
    """
    slot: SaveSlot
    if backend == "memory":
        slot = MemorySaveSlot(name)
    elif backend == "file":
        if path is None:
            raise ConfigurationError("SAVE_FILE_PATH", "file backend needs a path")
        slot = FileSaveSlot(path, name)
    elif backend == "redis":
        if redis_client is None:
            raise ConfigurationError("REDIS_URL", "redis backend needs a client")
        slot = RedisSaveSlot(redis_client, name)
    elif backend == "database":
        if transaction_factory is None:
            raise ConfigurationError("DATABASE_URL", "database backend needs a session factory")
        slot = DatabaseSaveSlot(transaction_factory, name)
    else:
        raise ConfigurationError("SAVE_BACKEND", f"unknown backend '{backend}'")

    logger.info("Save slot configured", extra={"backend": backend, "slot": name})
    return slot
