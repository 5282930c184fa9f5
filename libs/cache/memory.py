"""In-process cache store used when no remote cache is configured."""

import copy
import fnmatch
import time
from typing import Any, Dict, Optional

import structlog

from .base import DEFAULT_TTL_SECONDS, CacheEntry, CacheStore

logger = structlog.get_logger("cache.memory")


class InMemoryCacheStore(CacheStore):
    """Dictionary-backed cache with lazy expiry.

    Expired entries are evicted when read. Pattern deletes scan every key
    since there is no native index to consult. Stored values are deep-copied
    on the way in and out so callers cannot mutate cached state.
    """

    backend = "memory"

    def __init__(self, clock=time.time):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry

    async def get(self, key: str) -> Optional[Any]:
        entry = self._live_entry(key)
        if entry is None:
            logger.debug("Cache miss", key=key)
            return None
        return copy.deepcopy(entry.value)

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> bool:
        ttl = DEFAULT_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._entries[key] = CacheEntry(
            key=key,
            value=copy.deepcopy(value),
            ttl_seconds=ttl,
            stored_at=self._clock(),
        )
        return True

    async def delete(self, key: str) -> bool:
        if self._live_entry(key) is None:
            return False
        del self._entries[key]
        return True

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def delete_by_pattern(self, pattern: str) -> int:
        matched = [
            key for key in list(self._entries)
            if fnmatch.fnmatchcase(key, pattern) and self._live_entry(key) is not None
        ]
        for key in matched:
            del self._entries[key]
        logger.info("Cache keys deleted by pattern", pattern=pattern, deleted=len(matched))
        return len(matched)

    async def clear(self) -> bool:
        self._entries.clear()
        return True

    def __len__(self) -> int:
        return len(self._entries)
