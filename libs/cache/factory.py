"""Cache store factory.

Backend selection happens once, at construction: a configured Redis URL
selects ``RedisCacheStore``; otherwise the in-process store is used.
"""

from typing import Optional

import structlog

from libs.common.config import BaseConfig
from libs.common.errors import redact_url

from .base import CacheStore
from .memory import InMemoryCacheStore
from .redis_store import RedisCacheStore

logger = structlog.get_logger("cache.factory")


def create_cache_store(
    redis_url: Optional[str] = None,
    namespace: Optional[str] = None
) -> CacheStore:
    """Create a cache store for the given connection settings."""
    if redis_url:
        try:
            store = RedisCacheStore(redis_url=redis_url, namespace=namespace)
            logger.info("Using Redis cache store", redis_url=redact_url(redis_url))
            return store
        except ValueError as e:
            logger.warning(
                "Failed to initialize Redis cache store, falling back to in-memory cache",
                error=str(e)
            )

    logger.info("Using in-memory cache store")
    return InMemoryCacheStore()


def create_cache_store_from_config(config: BaseConfig) -> CacheStore:
    """Create a cache store from typed configuration."""
    return create_cache_store(
        redis_url=config.search_redis_url,
        namespace=config.search_cache_namespace,
    )
