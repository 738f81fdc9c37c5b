"""
RedisService: async Redis client for the save-slot backend.

Purpose
-------
Own one `redis.asyncio` client for the process, verified with PING on
startup, and hand it to the Redis save slot.

Responsibilities
----------------
- Initialize the singleton client (idempotent, lock-protected)
- Expose the client and a simple health check
- Close the client on shutdown

Non-Responsibilities
--------------------
- Key naming and payload encoding (persistence layer)
- Business logic of any kind

Configuration
-------------
- REDIS_URL            : str (default "redis://localhost:6379/0")
- REDIS_SOCKET_TIMEOUT : int seconds (default 5)
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

from redis.asyncio.client import Redis as AsyncRedis  # type: ignore[misc]
from redis.exceptions import RedisError

from clicker.core.config.config import Config
from clicker.core.logging.logger import get_logger

logger = get_logger(__name__)


class RedisService:

    _client: Optional[AsyncRedis] = None
    _init_lock: asyncio.Lock = asyncio.Lock()
    _is_healthy: bool = False

    # ═══════════════════════════════════════════════════════════════════════
    # LIFECYCLE MANAGEMENT
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Create and verify the client. Safe to call multiple times.

        Raises
        ------
        RuntimeError
            If the server cannot be reached.
        """
        if cls._client is not None:
            logger.debug("RedisService already initialized, skipping")
            return

        async with cls._init_lock:
            if cls._client is not None:
                return

            url = url or Config.REDIS_URL
            socket_timeout = Config.REDIS_SOCKET_TIMEOUT
            start_time = time.monotonic()

            client: AsyncRedis = AsyncRedis.from_url(
                url,
                socket_timeout=socket_timeout,
                encoding="utf-8",
                decode_responses=True,
            )
            try:
                await client.ping()  # type: ignore[misc]
            except (RedisError, OSError) as exc:
                await client.aclose()
                cls._is_healthy = False
                logger.critical(
                    "Failed to initialize RedisService",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "url_scheme": url.split("://")[0] if "://" in url else "unknown",
                    },
                    exc_info=True,
                )
                raise RuntimeError(f"Failed to initialize RedisService: {exc}") from exc

            cls._client = client
            cls._is_healthy = True
            logger.info(
                "RedisService initialized successfully",
                extra={
                    "url_scheme": url.split("://")[0] if "://" in url else "unknown",
                    "socket_timeout_seconds": socket_timeout,
                    "initialization_time_ms": round((time.monotonic() - start_time) * 1000, 2),
                },
            )

    @classmethod
    async def shutdown(cls) -> None:
        """Close the client. Safe to call even if not initialized."""
        client, cls._client = cls._client, None
        cls._is_healthy = False
        if client is None:
            return
        await client.aclose()
        logger.info("RedisService shutdown complete")

    @classmethod
    async def health_check(cls) -> bool:
        if cls._client is None:
            return False
        try:
            await cls._client.ping()  # type: ignore[misc]
            cls._is_healthy = True
        except (RedisError, OSError) as exc:
            cls._is_healthy = False
            logger.warning(
                "Redis health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
        return cls._is_healthy

    @classmethod
    def is_healthy(cls) -> bool:
        return cls._is_healthy

    @classmethod
    def client(cls) -> AsyncRedis:
        """
        Raises
        ------
        RuntimeError
            If `initialize()` has not completed.
        """
        if cls._client is None:
            raise RuntimeError("RedisService is not initialized")
        return cls._client

    @classmethod
    def get_status(cls) -> dict[str, Any]:
        return {"initialized": cls._client is not None, "healthy": cls._is_healthy}
