"""Vector search client factory.

Centralizes creation of concrete ``VectorSearchClient`` backends so callers
don't depend on implementation details.
"""

from enum import Enum
from typing import Any, Dict, Optional

import structlog

from libs.cache.base import CacheStore
from libs.common.config import SearchConfig

from .base import VectorSearchClient
from .embedding import EmbeddingClient
from .opensearch import OpenSearchVectorClient

logger = structlog.get_logger("vector_store.factory")


class VectorStoreType(Enum):
    """Supported vector backends."""
    OPENSEARCH = "opensearch"


class VectorStoreFactory:
    """Factory for creating vector search clients."""

    @staticmethod
    def create(
        store_type: VectorStoreType,
        config: Dict[str, Any],
        embedder: EmbeddingClient
    ) -> VectorSearchClient:
        """Create a vector search client.

        Parameters
        - store_type: A ``VectorStoreType`` enum value
        - config: Backend-specific parameters (hosts, index name, ...)
        - embedder: Embedding client used to vectorize text
        """
        if store_type == VectorStoreType.OPENSEARCH:
            hosts = config.get("hosts") or []
            if not hosts:
                raise ValueError("OpenSearch requires 'hosts' in config")

            return OpenSearchVectorClient(
                hosts=hosts,
                embedder=embedder,
                index_name=config.get("index_name", "catalog_vectors"),
                vector_dimension=config.get("vector_dimension", 384),
                username=config.get("username"),
                password=config.get("password"),
                verify_certs=config.get("verify_certs", False),
                ssl_assert_hostname=config.get("ssl_assert_hostname", False),
                ssl_show_warn=config.get("ssl_show_warn", False),
                timeout=config.get("timeout", 10.0)
            )

        raise ValueError(f"Unsupported vector store type: {store_type}")


def create_vector_client_from_config(
    config: SearchConfig,
    cache: Optional[CacheStore] = None
) -> VectorSearchClient:
    """Create the vector client described by ``SearchConfig``.

    The cache, when given, memoizes query embeddings.
    """
    embedder = EmbeddingClient(
        service_url=config.search_embedding_service_url,
        model=config.search_embedding_model,
        timeout=config.search_embedding_timeout,
        cache=cache,
        cache_ttl=config.search_embedding_cache_ttl,
        cache_namespace=config.search_embedding_cache_namespace
    )

    return VectorStoreFactory.create(
        VectorStoreType.OPENSEARCH,
        {
            "hosts": config.opensearch_host_list(),
            "index_name": config.search_vector_index,
            "vector_dimension": config.search_vector_dimension,
            "username": config.search_opensearch_username,
            "password": config.search_opensearch_password,
            "verify_certs": config.search_opensearch_verify_certs,
            "ssl_assert_hostname": config.search_opensearch_ssl_assert_hostname,
            "ssl_show_warn": config.search_opensearch_ssl_show_warn,
            "timeout": config.search_opensearch_timeout,
        },
        embedder
    )
