"""Redis-backed cache store."""

import json
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import redis.asyncio as redis
import structlog

from libs.common.errors import CacheError, redact

from .base import DEFAULT_TTL_SECONDS, CacheStore

logger = structlog.get_logger("cache.redis")

T = TypeVar("T")

DELETE_BATCH_SIZE = 100


class RedisCacheStore(CacheStore):
    """Cache store on a shared Redis instance.

    Values are stored as JSON text with ``SETEX``. Pattern deletes walk the
    keyspace with ``SCAN MATCH`` and delete in batches. Any backend failure is
    converted to ``CacheError`` and swallowed at the public method boundary.
    """

    backend = "redis"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        namespace: Optional[str] = None,
        client: Optional[redis.Redis] = None
    ):
        if client is None and not redis_url:
            raise ValueError("RedisCacheStore requires a redis_url or client")
        self.redis_client = client if client is not None else redis.from_url(redis_url)
        self.namespace = namespace

    async def _execute(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await call()
        except Exception as e:
            raise CacheError(f"Redis {operation} failed: {redact(str(e))}") from e

    async def get(self, key: str) -> Optional[Any]:
        try:
            cached_data = await self._execute("get", lambda: self.redis_client.get(key))
            if cached_data is None:
                logger.debug("Cache miss", key=key)
                return None
            return json.loads(cached_data)
        except (CacheError, ValueError) as e:
            logger.warning("Failed to read cache entry", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> bool:
        ttl = DEFAULT_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        try:
            payload = json.dumps(value, default=str)
            await self._execute("setex", lambda: self.redis_client.setex(key, ttl, payload))
            return True
        except (CacheError, TypeError, ValueError) as e:
            logger.warning("Failed to write cache entry", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        try:
            deleted = await self._execute("delete", lambda: self.redis_client.delete(key))
            return deleted == 1
        except CacheError as e:
            logger.warning("Failed to delete cache entry", key=key, error=str(e))
            return False

    async def exists(self, key: str) -> bool:
        try:
            count = await self._execute("exists", lambda: self.redis_client.exists(key))
            return count > 0
        except CacheError as e:
            logger.warning("Failed to check cache entry", key=key, error=str(e))
            return False

    async def _scan(self, pattern: str) -> List[Any]:
        return [key async for key in self.redis_client.scan_iter(match=pattern, count=500)]

    async def delete_by_pattern(self, pattern: str) -> int:
        try:
            keys = await self._execute("scan", lambda: self._scan(pattern))
            deleted = 0
            for start in range(0, len(keys), DELETE_BATCH_SIZE):
                batch = keys[start:start + DELETE_BATCH_SIZE]
                deleted += await self._execute("delete", lambda: self.redis_client.delete(*batch))

            logger.info("Cache keys deleted by pattern", pattern=pattern, deleted=deleted)
            return deleted
        except CacheError as e:
            logger.warning("Failed to delete cache keys by pattern", pattern=pattern, error=str(e))
            return 0

    async def clear(self) -> bool:
        if self.namespace:
            await self.delete_by_pattern(f"{self.namespace}:*")
            return True
        try:
            await self._execute("flushdb", lambda: self.redis_client.flushdb())
            return True
        except CacheError as e:
            logger.warning("Failed to clear cache", error=str(e))
            return False

    async def close(self) -> None:
        try:
            await self.redis_client.aclose()
            logger.info("Redis cache store closed")
        except Exception as e:
            logger.warning("Failed to close Redis cache store", error=str(e))
