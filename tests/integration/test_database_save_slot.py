"""
Integration Tests for the Database Save Slot
============================================

Purpose
-------
Exercise `DatabaseService` and `DatabaseSaveSlot` against a real SQLite
database file through aiosqlite.

Test Coverage
-------------
- Engine lifecycle and schema creation
- Transaction commit and rollback
- Slot write, overwrite, read and clear
- A full session saved to and restored from the database

Testing Strategy
----------------
- Each test gets its own database file under tmp_path
- DatabaseService is shut down after every test
"""

import json

import pytest
import pytest_asyncio
from sqlalchemy import select, text

from clicker.core.database.service import DatabaseNotInitializedError, DatabaseService
from clicker.database.models import SaveSlotRecord
from clicker.modules.persistence.gateway import PersistenceGateway
from clicker.modules.persistence.slots import DatabaseSaveSlot
from clicker.modules.session.engine import GameSession


@pytest_asyncio.fixture
async def database(tmp_path):
    await DatabaseService.initialize(f"sqlite+aiosqlite:///{tmp_path / 'clicker.db'}", echo=False)
    await DatabaseService.create_all()
    yield DatabaseService
    await DatabaseService.shutdown()


@pytest.fixture
def db_slot(database):
    return DatabaseSaveSlot(DatabaseService.get_transaction, "brainrotGame")


# ============================================================================
# DATABASE SERVICE
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestDatabaseService:

    async def test_health_check(self, database):
        assert DatabaseService.is_initialized()
        assert await DatabaseService.health_check()

    async def test_schema_created(self, database):
        async with DatabaseService.get_session() as session:
            result = await session.execute(
                text("SELECT name FROM sqlite_master WHERE type = 'table'")
            )
            tables = [row[0] for row in result.fetchall()]

        assert "save_slots" in tables

    async def test_transaction_rolls_back_on_error(self, database):
        with pytest.raises(RuntimeError):
            async with DatabaseService.get_transaction() as session:
                session.add(SaveSlotRecord(name="doomed", payload="{}"))
                await session.flush()
                raise RuntimeError("abort")

        async with DatabaseService.get_session() as session:
            rows = (await session.execute(select(SaveSlotRecord))).scalars().all()

        assert rows == []

    async def test_not_initialized(self):
        with pytest.raises(DatabaseNotInitializedError):
            async with DatabaseService.get_session():
                pass


# ============================================================================
# SAVE SLOT
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestDatabaseSaveSlot:

    async def test_empty_slot(self, db_slot):
        assert await db_slot.read() is None

    async def test_write_overwrite_clear(self, db_slot):
        # Act
        await db_slot.write('{"v":1}')
        await db_slot.write('{"v":2}')

        # Assert
        assert await db_slot.read() == '{"v":2}'
        async with DatabaseService.get_session() as session:
            count = len((await session.execute(select(SaveSlotRecord))).scalars().all())
        assert count == 1

        await db_slot.clear()
        assert await db_slot.read() is None

    async def test_slots_are_independent(self, database):
        first = DatabaseSaveSlot(DatabaseService.get_transaction, "one")
        second = DatabaseSaveSlot(DatabaseService.get_transaction, "two")

        await first.write("1")
        await second.write("2")

        assert await first.read() == "1"
        assert await second.read() == "2"

    async def test_session_round_trip(self, db_slot, settings, catalog):
        # Arrange
        first = await GameSession.create(settings, gateway=PersistenceGateway(db_slot), catalog=catalog)
        for _ in range(3):
            await first.click()
        await first.buy_or_select_badge("free-rare")
        await first.stop()

        # Act
        second = await GameSession.create(settings, gateway=PersistenceGateway(db_slot), catalog=catalog)

        # Assert
        assert second.snapshot() == first.snapshot()
        assert second.selected_badge_id == "free-rare"
        assert json.loads(await db_slot.read())["totalCoins"] == 3
        await second.stop()
