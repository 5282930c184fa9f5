"""Configuration management for the hybrid search subsystem.

This module centralizes environment-driven configuration for the search
orchestrator and its backends (cache, keyword index, vector index, record
store). It builds on ``pydantic_settings.BaseSettings`` so configuration can
be provided via environment variables, ``.env`` files, or defaults.

Highlights
- Strongly-typed settings with sensible defaults
- One place to discover commonly used environment variables
- Backend selection (e.g. Redis vs. in-process cache) is driven by presence
  of connection settings, not by separate feature flags

Usage
- Build once in your process entrypoint: ``config = SearchConfig()``
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration shared by every component.

    Field names map to environment variables case-insensitively, so
    ``search_log_level`` is read from ``SEARCH_LOG_LEVEL``.

    Notes
    - Add new shared settings here so downstream configs inherit them.
    - Prefer adding a field over reading ``os.environ`` directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    search_env: str = Field(default="local")

    # Logging
    search_log_level: str = Field(default="INFO")
    search_log_format: str = Field(default="json")

    # Cache (unset URL selects the in-process store)
    search_redis_url: Optional[str] = Field(default=None)
    search_cache_namespace: str = Field(default="search")

    # OpenSearch
    search_opensearch_hosts: str = Field(default="http://localhost:9200")
    search_opensearch_username: Optional[str] = Field(default=None)
    search_opensearch_password: Optional[str] = Field(default=None)
    search_opensearch_verify_certs: bool = Field(default=False)
    search_opensearch_ssl_assert_hostname: bool = Field(default=False)
    search_opensearch_ssl_show_warn: bool = Field(default=False)
    search_opensearch_timeout: float = Field(default=10.0)

    def opensearch_host_list(self) -> List[str]:
        """Return configured OpenSearch hosts as a list."""
        return [host.strip() for host in self.search_opensearch_hosts.split(",") if host.strip()]

    def secrets(self) -> List[str]:
        """Credential values that must never appear in error messages."""
        return [value for value in (self.search_opensearch_password,) if value]


class SearchConfig(BaseConfig):
    """Configuration for the hybrid search orchestrator.

    Extends ``BaseConfig`` with index names, embedding service settings,
    cache TTLs, and request bounds.
    """

    # Keyword indices are named ``{prefix}_{components|docs|resources}``
    search_keyword_index_prefix: str = Field(default="catalog")

    # Vector index
    search_vector_index: str = Field(default="catalog_vectors")
    search_vector_dimension: int = Field(default=384)

    # Embedding service used to auto-embed text for the vector index
    search_embedding_service_url: str = Field(default="http://localhost:9006")
    search_embedding_model: str = Field(default="default")
    search_embedding_timeout: float = Field(default=30.0)

    # Upstream record store (unset DSN disables semantic enrichment)
    search_records_dsn: Optional[str] = Field(default=None)
    search_records_table: str = Field(default="search_records")
    search_records_pool_size: int = Field(default=10)

    # Cache TTLs (seconds)
    search_cache_ttl: int = Field(default=300)
    search_suggest_cache_ttl: int = Field(default=300)
    search_embedding_cache_ttl: int = Field(default=3600)

    # Query embedding keys; must differ from the response namespace
    search_embedding_cache_namespace: str = Field(default="search_embedding")

    # Request bounds
    search_max_page_size: int = Field(default=100)
    search_enrichment_concurrency: int = Field(default=8)

