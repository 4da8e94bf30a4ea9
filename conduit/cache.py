import json
import logging

import redis.asyncio as redis

from conduit.config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Cache-aside manager backed by Redis.

    All public methods are safe to call even when Redis is unavailable:
    read operations return None and write operations are skipped, so a
    request never fails because of the cache.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, cache disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        """Return the cached value for *key*, or None on a miss / error."""
        if not self._redis:
            return None
        try:
            data = await self._redis.get(key)
        except Exception as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            return None
        return json.loads(data) if data is not None else None

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        """Delete all keys matching *pattern* using SCAN (avoids blocking KEYS)."""
        if not self._redis:
            return
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Cache invalidated %d key(s) matching %r", len(keys), pattern)
        except Exception as exc:
            logger.debug("Cache DELETE_PATTERN error for pattern=%r: %s", pattern, exc)

    # ------------------------------------------------------------------
    # Domain-level keys and invalidation
    # ------------------------------------------------------------------

    @staticmethod
    def tags_key(viewer: str | None) -> str:
        # Tag popularity depends on which articles the viewer can see.
        return f"tags:list:{viewer or '-'}"

    async def invalidate_tags(self) -> None:
        """Purge every viewer's tag list after an article write."""
        await self.delete_pattern("tags:list:*")


# Module-level singleton shared across all request handlers.
cache = CacheManager()
