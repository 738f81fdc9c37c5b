"""Redis infrastructure."""

from clicker.core.redis.service import RedisService

__all__ = ["RedisService"]
