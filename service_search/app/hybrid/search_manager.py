"""Hybrid search orchestration.

Combines full-text ranking (keyword) with vector similarity (semantic) behind
one ``search`` call. Responses are memoized in a ``CacheStore``; the cache is
best-effort and every miss or cache failure falls through to the backends.

In hybrid mode both branches run concurrently and each branch's outcome is
captured independently, so a failing backend degrades the response instead of
failing it. Only when no branch succeeds does ``SearchUnavailable`` escape.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Optional, Tuple, Union

import pydantic
import structlog

from libs.cache.base import CacheStore
from libs.common.config import SearchConfig
from libs.common.errors import (
    BranchOutcome,
    EnrichmentError,
    SearchBackendError,
    SearchUnavailable,
    ValidationError,
    redact,
)
from libs.common.metrics import MetricsCollector
from libs.keyword_store.base import KeywordHit, KeywordSearchClient
from libs.vector_store.base import VectorMatch, VectorSearchClient
from libs.vector_store.filters import VectorFilter

from ..models import (
    BaseHit,
    DocumentType,
    SearchMode,
    SearchRequest,
    SearchResponse,
    build_hit,
)
from ..ranking.fusion import RankFusionAlgorithm, create_fusion_algorithm, merge_hit_lists
from ..retrievers.cache_keys import QueryCacheKeyBuilder
from ..retrievers.records import RecordStore

logger = structlog.get_logger("search_service.search_manager")

KEYWORD_BRANCH = "keyword"
SEMANTIC_BRANCH = "semantic"


@dataclass
class BranchHits:
    hits: List[BaseHit]
    total_hits: int


class HybridSearchOrchestrator:
    """Validates requests, consults the cache, fans out, fuses, paginates.

    Collaborators are injected (see ``SearchContext``); the orchestrator owns
    no connections and keeps no per-request state on ``self``.
    """

    def __init__(
        self,
        keyword_client: KeywordSearchClient,
        vector_client: VectorSearchClient,
        cache: CacheStore,
        record_store: Optional[RecordStore] = None,
        config: Optional[SearchConfig] = None,
        metrics: Optional[MetricsCollector] = None,
        fusion_algorithm: Optional[RankFusionAlgorithm] = None
    ):
        self.config = config or SearchConfig()
        self.keyword_client = keyword_client
        self.vector_client = vector_client
        self.cache = cache
        self.record_store = record_store
        self.metrics = metrics
        self.fusion_algorithm = fusion_algorithm or create_fusion_algorithm()
        self.key_builder = QueryCacheKeyBuilder(self.config.search_cache_namespace)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, request: Union[SearchRequest, Dict[str, Any]]) -> SearchRequest:
        """Return a well-formed request or raise ``ValidationError``."""
        if not isinstance(request, SearchRequest):
            try:
                request = SearchRequest.model_validate(request)
            except pydantic.ValidationError as e:
                raise ValidationError(f"Malformed search request: {e}") from e

        if not request.query_text or not request.query_text.strip():
            raise ValidationError("query_text must not be empty")

        max_page_size = self.config.search_max_page_size
        if not 1 <= request.page_size <= max_page_size:
            raise ValidationError(f"page_size must be between 1 and {max_page_size}")

        if request.page_index < 0:
            raise ValidationError("page_index must be >= 0")

        return request

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        request: Union[SearchRequest, Dict[str, Any]],
        deadline_seconds: Optional[float] = None
    ) -> SearchResponse:
        """Run a search.

        ``deadline_seconds`` bounds each backend branch; a branch that runs
        past it counts as failed.
        """
        start_time = time.perf_counter()
        request = self.validate(request)

        cache_key: Optional[str] = None
        if request.use_cache:
            cache_key = self.key_builder.search_key(request)
            cached = await self._read_cached_response(cache_key)
            if cached is not None:
                logger.info("Search cache hit", query=request.query_text[:50], mode_used=cached.mode_used.value)
                return cached.model_copy(update={"elapsed_ms": self._elapsed_ms(start_time)})

        try:
            branch_hits, mode_used, failures = await self._execute(request, deadline_seconds)
        except SearchUnavailable:
            if self.metrics:
                self.metrics.record_search_unavailable(request.mode.value)
            raise

        response = SearchResponse(
            hits=branch_hits.hits,
            total_hits=branch_hits.total_hits,
            page_index=request.page_index,
            total_pages=math.ceil(branch_hits.total_hits / request.page_size),
            elapsed_ms=self._elapsed_ms(start_time),
            mode_used=mode_used,
            degraded=bool(failures),
            failed_branches=sorted(failures),
        )

        if cache_key is not None:
            await self.cache.set(cache_key, response.model_dump(mode="json"), self.config.search_cache_ttl)

        if self.metrics:
            self.metrics.record_search(request.mode.value, mode_used.value, response.elapsed_ms / 1000)

        logger.info(
            "Search completed",
            query=request.query_text[:50],
            mode=request.mode.value,
            mode_used=mode_used.value,
            results_count=len(response.hits),
            total_hits=response.total_hits,
            degraded=response.degraded,
            cache_miss=request.use_cache
        )
        return response

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return round((time.perf_counter() - start_time) * 1000, 3)

    async def _read_cached_response(self, cache_key: str) -> Optional[SearchResponse]:
        cached = await self.cache.get(cache_key)
        if cached is None:
            if self.metrics:
                self.metrics.record_cache_miss("search")
            return None

        try:
            response = SearchResponse.model_validate(cached)
        except pydantic.ValidationError as e:
            logger.warning("Discarding unreadable cached response", cache_key=cache_key, error=str(e))
            if self.metrics:
                self.metrics.record_cache_miss("search")
            return None

        if self.metrics:
            self.metrics.record_cache_hit("search")
        return response

    async def _execute(
        self,
        request: SearchRequest,
        deadline_seconds: Optional[float]
    ) -> Tuple[BranchHits, SearchMode, Dict[str, SearchBackendError]]:
        if request.mode is SearchMode.KEYWORD:
            outcome = await self._run_branch(KEYWORD_BRANCH, self._keyword_branch(request), deadline_seconds)
            if not outcome.ok:
                raise SearchUnavailable({outcome.name: outcome.error})
            return outcome.value, SearchMode.KEYWORD, {}

        if request.mode is SearchMode.SEMANTIC:
            outcome = await self._run_branch(SEMANTIC_BRANCH, self._semantic_branch(request), deadline_seconds)
            if not outcome.ok:
                raise SearchUnavailable({outcome.name: outcome.error})
            return outcome.value, SearchMode.SEMANTIC, {}

        return await self._hybrid(request, deadline_seconds)

    async def _hybrid(
        self,
        request: SearchRequest,
        deadline_seconds: Optional[float]
    ) -> Tuple[BranchHits, SearchMode, Dict[str, SearchBackendError]]:
        keyword_outcome, semantic_outcome = await asyncio.gather(
            self._run_branch(KEYWORD_BRANCH, self._keyword_branch(request), deadline_seconds),
            self._run_branch(SEMANTIC_BRANCH, self._semantic_branch(request), deadline_seconds),
        )

        failures = {
            outcome.name: outcome.error
            for outcome in (keyword_outcome, semantic_outcome)
            if not outcome.ok
        }
        if len(failures) == 2:
            raise SearchUnavailable(failures)

        keyword = keyword_outcome.value if keyword_outcome.ok else BranchHits([], 0)
        semantic = semantic_outcome.value if semantic_outcome.ok else BranchHits([], 0)

        hits = self.fusion_algorithm.fuse_results(keyword.hits, semantic.hits, request.page_size)

        # Ids found by both branches are counted twice here; callers treat
        # total_hits in hybrid mode as an estimate.
        total_hits = keyword.total_hits + semantic.total_hits

        if not failures:
            mode_used = SearchMode.HYBRID
        elif keyword_outcome.ok:
            mode_used = SearchMode.KEYWORD
        else:
            mode_used = SearchMode.SEMANTIC

        if failures:
            logger.warning(
                "Hybrid search degraded",
                mode_used=mode_used.value,
                failed_branches=sorted(failures)
            )

        return BranchHits(hits, total_hits), mode_used, failures

    async def _run_branch(
        self,
        name: str,
        branch: Awaitable[BranchHits],
        deadline_seconds: Optional[float]
    ) -> BranchOutcome[BranchHits]:
        """Await a branch and capture its outcome instead of raising."""
        try:
            if deadline_seconds is None:
                value = await branch
            else:
                value = await asyncio.wait_for(branch, timeout=deadline_seconds)
            return BranchOutcome(name=name, value=value)
        except SearchBackendError as e:
            error = e
        except asyncio.TimeoutError:
            error = SearchBackendError(name, f"deadline of {deadline_seconds}s exceeded")
        except Exception as e:
            error = SearchBackendError(name, redact(str(e)))

        logger.warning("Search branch failed", branch=name, error=error.message)
        if self.metrics:
            self.metrics.record_backend_failure(name)
        return BranchOutcome(name=name, error=error)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def _keyword_branch(self, request: SearchRequest) -> BranchHits:
        filters = request.filters.as_dict()
        document_types = request.document_type.selected()

        pages = await asyncio.gather(*[
            self.keyword_client.search(
                document_type.value,
                request.query_text.strip(),
                filters,
                request.page_size,
                request.page_index
            )
            for document_type in document_types
        ])

        hit_lists = [
            [self._keyword_hit(document_type, hit) for hit in page.hits]
            for document_type, page in zip(document_types, pages)
        ]
        return BranchHits(
            hits=merge_hit_lists(hit_lists),
            total_hits=sum(page.total_hits for page in pages)
        )

    @staticmethod
    def _keyword_hit(document_type: DocumentType, hit: KeywordHit) -> BaseHit:
        return build_hit(
            document_type.hit_type,
            hit.raw_fields,
            id=hit.id,
            score=hit.score,
            highlight_fragments=hit.highlight_fragments,
        )

    async def _semantic_branch(self, request: SearchRequest) -> BranchHits:
        filters = request.filters
        vector_filter = VectorFilter.from_fields(
            framework=filters.framework,
            category=filters.category,
            tags=filters.tags
        )

        matches = await self.vector_client.query(
            request.query_text.strip(),
            top_k=request.page_size,
            filter=vector_filter
        )
        hits = await self._enrich(matches)
        return BranchHits(hits=hits, total_hits=len(hits))

    async def _enrich(self, matches: List[VectorMatch]) -> List[BaseHit]:
        """Attach canonical records to vector matches with bounded concurrency.

        Matches whose record cannot be fetched are dropped.
        """
        semaphore = asyncio.Semaphore(self.config.search_enrichment_concurrency)

        async def enrich_one(match: VectorMatch) -> Optional[BaseHit]:
            async with semaphore:
                try:
                    return await self._enrich_match(match)
                except EnrichmentError as e:
                    logger.warning("Dropping semantic hit", record_id=e.record_id, error=str(e))
                    if self.metrics:
                        self.metrics.record_enrichment_drop()
                    return None

        enriched = await asyncio.gather(*(enrich_one(match) for match in matches))
        return [hit for hit in enriched if hit is not None]

    async def _enrich_match(self, match: VectorMatch) -> BaseHit:
        if self.record_store is None:
            # No upstream store configured: vector metadata is all we have.
            hit_type = match.metadata.get("type") or "resource"
            try:
                return build_hit(hit_type, match.metadata, id=match.id, score=match.score)
            except (pydantic.ValidationError, TypeError, ValueError) as e:
                raise EnrichmentError(match.id, f"unusable metadata: {e}") from e

        try:
            records = await self.record_store.fetch_records_by_ids([match.id])
        except Exception as e:
            raise EnrichmentError(match.id, redact(str(e))) from e

        record = records.get(match.id)
        if record is None:
            raise EnrichmentError(match.id, "record not found")

        hit_type = record.get("record_type") or match.metadata.get("type") or "resource"
        try:
            return build_hit(
                hit_type,
                record,
                id=match.id,
                score=match.score,
                raw_metadata={**match.metadata, "record": record}
            )
        except (pydantic.ValidationError, TypeError, ValueError) as e:
            raise EnrichmentError(match.id, f"unusable record: {e}") from e

    # ------------------------------------------------------------------
    # Related operations
    # ------------------------------------------------------------------

    async def find_similar(self, record_id: str, top_k: int = 5) -> List[BaseHit]:
        """Records semantically closest to ``record_id``, excluding itself."""
        if not record_id:
            raise ValidationError("record_id must not be empty")
        if not 1 <= top_k <= self.config.search_max_page_size:
            raise ValidationError(f"top_k must be between 1 and {self.config.search_max_page_size}")

        matches = await self.vector_client.find_similar(record_id, top_k)
        return await self._enrich(matches)

    async def suggest(self, query_text: str, limit: int = 5) -> List[str]:
        """Autocomplete suggestions, cached like search responses."""
        if not query_text or not query_text.strip():
            raise ValidationError("query_text must not be empty")

        cache_key = self.key_builder.suggest_key(query_text, limit)
        return await self.cache.remember(
            cache_key,
            lambda: self.keyword_client.suggest(query_text.strip(), limit),
            self.config.search_suggest_cache_ttl
        )

    async def invalidate_cache(self, pattern: Optional[str] = None) -> int:
        """Drop cached entries; defaults to the whole search namespace."""
        pattern = pattern or self.key_builder.namespace_pattern()
        deleted = await self.cache.delete_by_pattern(pattern)
        logger.info("Search cache invalidated", pattern=pattern, deleted=deleted)
        return deleted

    async def health_check(self) -> Dict[str, Any]:
        keyword_ok, vector_ok = await asyncio.gather(
            self.keyword_client.health_check(),
            self.vector_client.health_check()
        )
        return {
            "keyword": keyword_ok,
            "vector": vector_ok,
            "cache_backend": self.cache.backend,
            "healthy": keyword_ok and vector_ok,
        }
