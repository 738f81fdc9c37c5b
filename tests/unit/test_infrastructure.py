"""
Unit Tests for the Redis Service Lifecycle
"""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from clicker.core.redis.service import RedisService


@pytest.fixture(autouse=True)
async def clean_redis_service():
    yield
    await RedisService.shutdown()


@pytest.mark.unit
class TestRedisService:

    async def test_initialize_and_shutdown(self, mocker):
        client = mocker.AsyncMock()
        from_url = mocker.patch("clicker.core.redis.service.AsyncRedis.from_url", return_value=client)

        await RedisService.initialize("redis://cache:6379/1")

        from_url.assert_called_once()
        assert from_url.call_args.args[0] == "redis://cache:6379/1"
        assert RedisService.client() is client
        assert RedisService.get_status() == {"initialized": True, "healthy": True}

        await RedisService.shutdown()

        client.aclose.assert_awaited_once()
        assert not RedisService.is_healthy()

    async def test_unreachable_server(self, mocker):
        client = mocker.AsyncMock()
        client.ping.side_effect = RedisConnectionError("refused")
        mocker.patch("clicker.core.redis.service.AsyncRedis.from_url", return_value=client)

        with pytest.raises(RuntimeError):
            await RedisService.initialize("redis://nowhere:6379/0")

        client.aclose.assert_awaited_once()
        with pytest.raises(RuntimeError):
            RedisService.client()

    async def test_health_check_failure(self, mocker):
        client = mocker.AsyncMock()
        mocker.patch("clicker.core.redis.service.AsyncRedis.from_url", return_value=client)
        await RedisService.initialize("redis://cache:6379/0")

        client.ping.side_effect = RedisConnectionError("gone")

        assert await RedisService.health_check() is False
        assert not RedisService.is_healthy()
