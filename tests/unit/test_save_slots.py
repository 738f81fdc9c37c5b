"""
Unit Tests for Save Slots
=========================

Test Coverage
-------------
- Memory slot: read, write, clear, shared store
- File slot: atomic replace, missing file, OSError wrapping
- Redis slot: key naming, bytes decoding, RedisError wrapping
- build_save_slot: backend selection and configuration errors

Testing Strategy
----------------
- File slot against tmp_path
- Redis slot against an AsyncMock client (no server)
- Database slot is covered by integration tests
"""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from clicker.core.exceptions import ConfigurationError, SaveSlotError
from clicker.modules.persistence.slots import (
    DatabaseSaveSlot,
    FileSaveSlot,
    MemorySaveSlot,
    RedisSaveSlot,
    build_save_slot,
)


@pytest.mark.unit
class TestMemorySaveSlot:

    async def test_empty_slot_reads_none(self, memory_slot):
        assert await memory_slot.read() is None

    async def test_write_read_clear(self, memory_slot):
        await memory_slot.write('{"a":1}')
        assert await memory_slot.read() == '{"a":1}'

        await memory_slot.clear()
        assert await memory_slot.read() is None

    async def test_slots_share_a_store_by_name(self):
        store = {}
        first = MemorySaveSlot("one", store)
        second = MemorySaveSlot("two", store)

        await first.write("1")
        await second.write("2")

        assert store == {"one": "1", "two": "2"}


@pytest.mark.unit
class TestFileSaveSlot:

    async def test_missing_file_reads_none(self, tmp_path):
        assert await FileSaveSlot(tmp_path / "save.json").read() is None

    async def test_write_creates_parent_and_replaces(self, tmp_path):
        path = tmp_path / "saves" / "brainrotGame.json"
        slot = FileSaveSlot(path)

        await slot.write("first")
        await slot.write("second")

        assert slot.name == "brainrotGame"
        assert path.read_text(encoding="utf-8") == "second"
        assert not (path.parent / "brainrotGame.json.tmp").exists()
        assert await slot.read() == "second"

    async def test_clear_is_idempotent(self, tmp_path):
        slot = FileSaveSlot(tmp_path / "save.json")
        await slot.write("x")

        await slot.clear()
        await slot.clear()

        assert await slot.read() is None

    async def test_os_error_wrapped(self, tmp_path):
        # A directory where the file should be makes the read fail.
        path = tmp_path / "save.json"
        path.mkdir()
        slot = FileSaveSlot(path)

        with pytest.raises(SaveSlotError) as exc_info:
            await slot.read()

        assert exc_info.value.backend == "file"
        assert exc_info.value.operation == "read"
        assert exc_info.value.is_retryable


@pytest.mark.unit
class TestRedisSaveSlot:

    async def test_round_trip(self, mocker):
        client = mocker.AsyncMock()
        client.get.return_value = b'{"totalCoins":1}'
        slot = RedisSaveSlot(client, "brainrotGame")

        await slot.write('{"totalCoins":1}')
        blob = await slot.read()
        await slot.clear()

        client.set.assert_awaited_once_with("clicker:save:brainrotGame", '{"totalCoins":1}')
        client.get.assert_awaited_once_with("clicker:save:brainrotGame")
        client.delete.assert_awaited_once_with("clicker:save:brainrotGame")
        assert blob == '{"totalCoins":1}'

    async def test_missing_key(self, mocker):
        client = mocker.AsyncMock()
        client.get.return_value = None

        assert await RedisSaveSlot(client).read() is None

    async def test_redis_error_wrapped(self, mocker):
        client = mocker.AsyncMock()
        client.set.side_effect = RedisConnectionError("connection refused")

        with pytest.raises(SaveSlotError) as exc_info:
            await RedisSaveSlot(client).write("x")

        assert exc_info.value.backend == "redis"
        assert isinstance(exc_info.value.original_error, RedisConnectionError)


@pytest.mark.unit
class TestBuildSaveSlot:

    def test_memory(self):
        assert isinstance(build_save_slot("memory", "s"), MemorySaveSlot)

    def test_file(self, tmp_path):
        slot = build_save_slot("file", "s", path=tmp_path / "s.json")

        assert isinstance(slot, FileSaveSlot)
        assert slot.name == "s"

    def test_redis(self, mocker):
        assert isinstance(build_save_slot("redis", "s", redis_client=mocker.AsyncMock()), RedisSaveSlot)

    def test_database(self, mocker):
        slot = build_save_slot("database", "s", transaction_factory=mocker.MagicMock())

        assert isinstance(slot, DatabaseSaveSlot)

    @pytest.mark.parametrize("backend", ["file", "redis", "database"])
    def test_missing_dependency(self, backend):
        with pytest.raises(ConfigurationError):
            build_save_slot(backend, "s")

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError) as exc_info:
            build_save_slot("cloud", "s")
        assert exc_info.value.config_key == "SAVE_BACKEND"
