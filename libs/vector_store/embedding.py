"""Client for the embedding service.

Posts text to ``{service_url}/api/v1/embed`` and returns one vector per
input. Query embeddings can be cached in a ``CacheStore``; cache failures
never affect the result.
"""

import hashlib
from typing import List, Optional

import httpx
import numpy as np
import structlog

from libs.cache.base import CacheStore
from libs.common.errors import SearchBackendError, redact

from .base import BACKEND_NAME

logger = structlog.get_logger("vector_store.embedding")


class EmbeddingClient:
    """Async embedding service client."""

    def __init__(
        self,
        service_url: str,
        model: str = "default",
        timeout: float = 30.0,
        cache: Optional[CacheStore] = None,
        cache_ttl: int = 3600,
        cache_namespace: str = "search_embedding",
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.service_url = service_url.rstrip("/")
        self.model = model
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.cache_namespace = cache_namespace
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    def _cache_key(self, text: str) -> str:
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"{self.cache_namespace}:{self.model}:{digest}"

    async def embed(self, texts: List[str]) -> List[np.ndarray]:
        """Embed a batch of texts with a single request."""
        if not texts:
            return []

        try:
            response = await self.http_client.post(
                f"{self.service_url}/api/v1/embed",
                json={
                    "items": [{"text": text} for text in texts],
                    "model": self.model
                }
            )
            response.raise_for_status()
            vectors = response.json().get("vectors", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Embedding service call failed", count=len(texts), error=redact(str(e)))
            raise SearchBackendError(BACKEND_NAME, f"embedding failed: {redact(str(e))}") from e

        if len(vectors) != len(texts):
            raise SearchBackendError(
                BACKEND_NAME,
                f"embedding service returned {len(vectors)} vectors for {len(texts)} texts"
            )

        return [np.asarray(vector, dtype=np.float32) for vector in vectors]

    async def embed_query(self, text: str) -> np.ndarray:
        """Embed one query, consulting the cache first."""
        cache_key = self._cache_key(text)
        if self.cache is not None:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                logger.debug("Query embedding cache hit", query=text[:50])
                return np.asarray(cached, dtype=np.float32)

        embedding = (await self.embed([text]))[0]

        if self.cache is not None:
            await self.cache.set(cache_key, embedding.tolist(), self.cache_ttl)
        return embedding

    async def close(self) -> None:
        await self.http_client.aclose()
