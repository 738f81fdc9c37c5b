"""
PersistenceGateway: load once, save after every committed mutation.

Purpose
-------
Keep the save slot in sync with the game without ever blocking an action.

Responsibilities
----------------
- `load()`: read the slot once at session start and decode leniently
- `request_save(snapshot)`: encode immediately, write in the background
- Coalesce bursts: while a write is in flight only the newest pending blob
  is kept, and it is written next (last write wins)
- `flush()` / `close()`: wait for the writer to go idle

Non-Responsibilities
--------------------
- Deciding when state changed (the session publishes ``session.committed``)
- Blob format (codec)

Design Notes
------------
- The blob is encoded at request time, so a save reflects the state at the
  moment of the mutation even if the write itself happens later.
- Slot failures are logged and counted; the game keeps running and the next
  mutation retries naturally.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional

from clicker.core.event.bus import EventBus
from clicker.core.event.types import EventPayload, ListenerPriority
from clicker.core.exceptions import SaveSlotError
from clicker.core.logging.logger import get_logger
from clicker.domain.models.game_state import GameSnapshot, GameState
from clicker.modules.persistence.codec import encode_snapshot, load_state
from clicker.modules.persistence.slots import SaveSlot
from clicker.modules.shared.exceptions import is_transient_error

logger = get_logger(__name__)

COMMITTED_EVENT = "session.committed"


class PersistenceGateway:

    def __init__(
        self,
        slot: SaveSlot,
        default_factory: Optional[Callable[[], GameState]] = None,
        default_badge_id: Optional[str] = None,
    ) -> None:
        self.slot = slot
        self.default_factory = default_factory
        self.default_badge_id = default_badge_id
        self._pending: Optional[str] = None
        self._writer: Optional[asyncio.Task[None]] = None
        self._closed = False
        self._metrics: Dict[str, int] = {
            "loads": 0,
            "writes": 0,
            "write_failures": 0,
            "coalesced": 0,
        }

    @property
    def writes(self) -> int:
        return self._metrics["writes"]

    @property
    def busy(self) -> bool:
        return self._writer is not None and not self._writer.done()

    # ------------------------------------------------------------------ #
    # Load
    # ------------------------------------------------------------------ #

    async def load(self) -> GameState:
        """
        Read the slot and decode it; never raises for missing or bad data.
        """
        self._metrics["loads"] += 1
        try:
            blob = await self.slot.read()
        except SaveSlotError as exc:
            logger.error(
                "Save slot read failed; starting fresh",
                extra={"backend": self.slot.backend, "slot": self.slot.name, "error": str(exc)},
            )
            blob = None

        kwargs: Dict[str, Any] = {"default_factory": self.default_factory}
        if self.default_badge_id is not None:
            kwargs["default_badge_id"] = self.default_badge_id
        state = load_state(blob, **kwargs)
        logger.info(
            "Game loaded",
            extra={"backend": self.slot.backend, "slot": self.slot.name, "restored": blob is not None},
        )
        return state

    # ------------------------------------------------------------------ #
    # Save
    # ------------------------------------------------------------------ #

    def request_save(self, snapshot: GameSnapshot) -> None:
        """Queue `snapshot` for writing and return immediately."""
        if self._closed:
            logger.warning("Save requested after gateway closed; ignored")
            return

        if self._pending is not None:
            self._metrics["coalesced"] += 1
        self._pending = encode_snapshot(snapshot)

        if not self.busy:
            self._writer = asyncio.get_running_loop().create_task(
                self._drain_pending(), name=f"save-writer-{self.slot.name}"
            )

    async def _drain_pending(self) -> None:
        while self._pending is not None:
            blob, self._pending = self._pending, None
            try:
                await self.slot.write(blob)
                self._metrics["writes"] += 1
            except SaveSlotError as exc:
                self._metrics["write_failures"] += 1
                logger.error(
                    "Save slot write failed",
                    extra={
                        "backend": self.slot.backend,
                        "slot": self.slot.name,
                        "error": str(exc),
                        "retryable": is_transient_error(exc),
                    },
                )

    async def flush(self) -> None:
        """Wait until every requested save has been written (or failed)."""
        while self.busy:
            assert self._writer is not None
            await asyncio.shield(self._writer)

    async def clear(self) -> None:
        """Drop any pending write and erase the slot."""
        self._pending = None
        await self.flush()
        await self.slot.clear()

    async def close(self) -> None:
        await self.flush()
        self._closed = True
        logger.info("Persistence gateway closed", extra={"writes": self.writes})

    # ------------------------------------------------------------------ #
    # Event bus wiring
    # ------------------------------------------------------------------ #

    def _on_committed(self, payload: EventPayload) -> None:
        snapshot = payload.get("snapshot")
        if isinstance(snapshot, GameSnapshot):
            self.request_save(snapshot)

    def attach(self, bus: EventBus) -> str:
        """Save on every ``session.committed`` event published on `bus`."""
        return bus.subscribe(
            COMMITTED_EVENT,
            self._on_committed,
            priority=ListenerPriority.HIGH,
            identifier=f"persistence-gateway:{self.slot.name}",
        )

    def get_metrics(self) -> Dict[str, int]:
        return dict(self._metrics)
