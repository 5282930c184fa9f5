"""Base cache store interface.

Defines the contract the search orchestrator depends on, independent of the
backing implementation (Redis or an in-process map).

Failure semantics are part of the contract: implementations swallow every
backend error. ``get`` failures read as misses, ``set``/``delete``/``exists``
failures return ``False`` and ``delete_by_pattern`` failures return ``0``.
Callers must always have a recompute path.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

DEFAULT_TTL_SECONDS = 3600


@dataclass
class CacheEntry:
    """A stored value with its expiry bookkeeping."""
    key: str
    value: Any
    ttl_seconds: int
    stored_at: float = field(default_factory=time.time)

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_seconds

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Reads strictly after ``stored_at + ttl_seconds`` are misses."""
        now = time.time() if now is None else now
        return now > self.expires_at


class CacheStore(ABC):
    """Abstract async key/value store with TTL expiry.

    Values must be JSON-serializable so every backend can store them.
    """

    backend: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or ``None`` on miss/expiry/failure."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> bool:
        """Store ``value`` for ``ttl_seconds`` (default one hour)."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key. Returns ``True`` if something was removed."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether a live entry exists for ``key``."""
        pass

    @abstractmethod
    async def delete_by_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (``ns:*``).

        Returns the number of deleted keys.
        """
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """Remove every entry owned by this store."""
        pass

    async def remember(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[int] = None
    ) -> Any:
        """Return the cached value for ``key`` or compute, store and return it.

        Errors raised by ``fetcher`` propagate; nothing is cached for them.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        fresh = await fetcher()
        await self.set(key, fresh, ttl_seconds)
        return fresh

    async def close(self) -> None:
        """Release backend resources."""
        return None
