"""Search context: builds and owns the orchestrator's collaborators.

There are no module-level clients. A ``SearchContext`` is created from
``SearchConfig``, initialized once, and closed on shutdown:

    async with SearchContext(SearchConfig()) as context:
        response = await context.orchestrator.search({"query_text": "button"})
"""

from typing import Optional

import structlog

from libs.cache.factory import create_cache_store_from_config
from libs.common.config import SearchConfig
from libs.common.logging import configure_logging
from libs.common.metrics import MetricsCollector
from libs.keyword_store.factory import create_keyword_client_from_config
from libs.vector_store.factory import create_vector_client_from_config

from .hybrid.search_manager import HybridSearchOrchestrator
from .retrievers.records import PostgresRecordStore, RecordStore
from .runtime.metrics import get_metrics_collector

logger = structlog.get_logger("search_service")


class SearchContext:
    """Wires cache, keyword, vector and record clients into an orchestrator."""

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        metrics: Optional[MetricsCollector] = None,
        configure_logs: bool = False
    ):
        self.config = config or SearchConfig()
        if configure_logs:
            configure_logging(
                "search-service",
                self.config.search_log_level,
                self.config.search_log_format,
                secrets=self.config.secrets()
            )

        self.metrics = metrics or get_metrics_collector("search-service")
        self.cache = create_cache_store_from_config(self.config)
        self.keyword_client = create_keyword_client_from_config(self.config)
        self.vector_client = create_vector_client_from_config(self.config, cache=self.cache)

        self.record_store: Optional[RecordStore] = None
        if self.config.search_records_dsn:
            self.record_store = PostgresRecordStore(
                dsn=self.config.search_records_dsn,
                table=self.config.search_records_table,
                pool_size=self.config.search_records_pool_size
            )
        else:
            logger.warning("No record store configured; semantic hits use vector metadata only")

        self.orchestrator = HybridSearchOrchestrator(
            keyword_client=self.keyword_client,
            vector_client=self.vector_client,
            cache=self.cache,
            record_store=self.record_store,
            config=self.config,
            metrics=self.metrics
        )

    async def initialize(self) -> None:
        """Prepare indices and open the record store pool."""
        logger.info("Initializing search context", env=self.config.search_env)
        await self.keyword_client.configure()
        await self.vector_client.initialize()
        if self.record_store is not None:
            await self.record_store.initialize()
        logger.info("Search context initialized")

    async def close(self) -> None:
        """Release every backend connection."""
        await self.keyword_client.close()
        await self.vector_client.close()
        if self.record_store is not None:
            await self.record_store.close()
        await self.cache.close()
        logger.info("Search context closed")

    async def __aenter__(self) -> "SearchContext":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
