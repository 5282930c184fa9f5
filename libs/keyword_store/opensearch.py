"""OpenSearch full-text keyword search client."""

from typing import Any, Dict, List, Optional

import structlog
from opensearchpy import AsyncOpenSearch
from opensearchpy.exceptions import OpenSearchException
from opensearchpy.helpers import async_bulk

from libs.common.errors import SearchBackendError, redact
from libs.common.metrics import measure_time

from .base import BACKEND_NAME, KeywordHit, KeywordPage, KeywordSearchClient
from .filters import compile_filters
from .settings import COMPONENTS, DEFAULT_INDEX_SETTINGS, IndexSettings

logger = structlog.get_logger("keyword_store.opensearch")


class OpenSearchKeywordClient(KeywordSearchClient):
    """Keyword search over one OpenSearch index per document type.

    Index names are ``{index_prefix}_{document_type}``.
    """

    def __init__(
        self,
        hosts: List[str],
        index_prefix: str = "catalog",
        settings: Optional[Dict[str, IndexSettings]] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_certs: bool = False,
        ssl_assert_hostname: bool = False,
        ssl_show_warn: bool = False,
        timeout: float = 10.0,
        client: Optional[AsyncOpenSearch] = None
    ):
        self.hosts = hosts
        self.index_prefix = index_prefix
        self.settings = settings or DEFAULT_INDEX_SETTINGS
        self._secrets = [password] if password else []

        self.client = client or AsyncOpenSearch(
            hosts=hosts,
            http_auth=(username, password) if username and password else None,
            verify_certs=verify_certs,
            ssl_assert_hostname=ssl_assert_hostname,
            ssl_show_warn=ssl_show_warn,
            use_ssl=hosts[0].startswith("https"),
            timeout=timeout,
        )

    def index_name(self, document_type: str) -> str:
        return f"{self.index_prefix}_{document_type}"

    def _settings_for(self, document_type: str) -> IndexSettings:
        try:
            return self.settings[document_type]
        except KeyError:
            raise ValueError(f"Unknown document type: {document_type}") from None

    def _backend_error(self, action: str, error: Exception, **context: Any) -> SearchBackendError:
        message = redact(str(error), self._secrets)
        logger.error(f"OpenSearch keyword {action} failed", error=message, **context)
        return SearchBackendError(BACKEND_NAME, f"{action} failed: {message}")

    async def configure(self) -> None:
        """Create missing indices and push mappings for existing ones."""
        for document_type, index_settings in self.settings.items():
            index_name = self.index_name(document_type)
            try:
                if await self.client.indices.exists(index=index_name):
                    await self.client.indices.put_mapping(
                        index=index_name,
                        body=index_settings.mappings()
                    )
                    logger.info("Keyword index settings updated", index_name=index_name)
                else:
                    await self.client.indices.create(index=index_name, body=index_settings.index_body())
                    logger.info("Keyword index created", index_name=index_name)
            except OpenSearchException as e:
                raise self._backend_error("configure", e, index_name=index_name) from e

    async def index(self, document_type: str, documents: List[Dict[str, Any]]) -> int:
        self._settings_for(document_type)
        if not documents:
            return 0

        index_name = self.index_name(document_type)
        actions = []
        for document in documents:
            if not document.get("id"):
                raise ValueError("Keyword documents require an 'id'")
            actions.append({
                "_index": index_name,
                "_id": str(document["id"]),
                "_source": document
            })

        try:
            success_count, failed_items = await async_bulk(self.client, actions, raise_on_error=False)
        except OpenSearchException as e:
            raise self._backend_error("index", e, index_name=index_name) from e

        if failed_items:
            logger.warning(
                "Some documents failed to index",
                index_name=index_name,
                failed_count=len(failed_items),
                total_count=len(documents)
            )

        logger.info("Documents indexed", index_name=index_name, count=success_count)
        return success_count

    def build_query(
        self,
        index_settings: IndexSettings,
        query_text: str,
        filters: Optional[Dict[str, Any]],
        page_size: int,
        page_index: int
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "from": page_index * page_size,
            "size": page_size,
            "track_total_hits": True,
            "query": {
                "bool": {
                    "must": [
                        {
                            "multi_match": {
                                "query": query_text,
                                "fields": index_settings.field_boosts(),
                                "type": "best_fields"
                            }
                        }
                    ],
                    "filter": compile_filters(index_settings, filters)
                }
            },
            "sort": index_settings.sort_clause(),
        }

        highlight = index_settings.highlight_clause()
        if highlight["fields"]:
            body["highlight"] = highlight

        if index_settings.distinct_field:
            body["collapse"] = {"field": index_settings.distinct_field}

        return body

    @staticmethod
    def _first_fragments(highlight: Dict[str, List[str]]) -> Dict[str, str]:
        fragments = {}
        for field_name, values in highlight.items():
            if values:
                fragments[field_name.split(".")[0]] = values[0]
        return fragments

    @measure_time("keyword_search")
    async def search(
        self,
        document_type: str,
        query_text: str,
        filters: Optional[Dict[str, Any]] = None,
        page_size: int = 20,
        page_index: int = 0
    ) -> KeywordPage:
        index_settings = self._settings_for(document_type)
        index_name = self.index_name(document_type)
        body = self.build_query(index_settings, query_text, filters, page_size, page_index)

        try:
            response = await self.client.search(index=index_name, body=body)
            total = response["hits"]["total"]
            total_hits = total["value"] if isinstance(total, dict) else int(total)

            hits = [
                KeywordHit(
                    id=hit["_id"],
                    score=float(hit.get("_score") or 0.0),
                    document_type=document_type,
                    highlight_fragments=self._first_fragments(hit.get("highlight", {})),
                    raw_fields=hit.get("_source", {})
                )
                for hit in response["hits"]["hits"]
            ]
        except OpenSearchException as e:
            raise self._backend_error("search", e, index_name=index_name) from e
        except (KeyError, TypeError, ValueError) as e:
            raise self._backend_error("search response parsing", e, index_name=index_name) from e

        logger.info(
            "Keyword search completed",
            index_name=index_name,
            results_count=len(hits),
            total_hits=total_hits
        )
        return KeywordPage(hits=hits, total_hits=total_hits)

    async def clear(self, document_type: Optional[str] = None) -> None:
        document_types = [document_type] if document_type else list(self.settings)
        for name in document_types:
            self._settings_for(name)
            index_name = self.index_name(name)
            try:
                await self.client.delete_by_query(
                    index=index_name,
                    body={"query": {"match_all": {}}},
                    refresh=True
                )
            except OpenSearchException as e:
                raise self._backend_error("clear", e, index_name=index_name) from e
            logger.info("Keyword index cleared", index_name=index_name)

    async def stats(self) -> Dict[str, int]:
        counts = {}
        for document_type in self.settings:
            index_name = self.index_name(document_type)
            try:
                response = await self.client.count(index=index_name)
            except OpenSearchException as e:
                raise self._backend_error("stats", e, index_name=index_name) from e
            counts[document_type] = int(response.get("count", 0))
        return counts

    async def suggest(self, query_text: str, limit: int = 5) -> List[str]:
        index_settings = self._settings_for(COMPONENTS)
        index_name = self.index_name(COMPONENTS)
        body = {
            "size": limit,
            "_source": ["name", "tags"],
            "query": {
                "multi_match": {
                    "query": query_text,
                    "fields": index_settings.field_boosts(),
                    "type": "bool_prefix"
                }
            }
        }

        try:
            response = await self.client.search(index=index_name, body=body)
            sources = [hit.get("_source", {}) for hit in response["hits"]["hits"]]
        except OpenSearchException as e:
            raise self._backend_error("suggest", e, index_name=index_name) from e
        except (KeyError, TypeError) as e:
            raise self._backend_error("suggest response parsing", e, index_name=index_name) from e

        suggestions: List[str] = []
        for source in sources:
            candidates = [source.get("name")] + list(source.get("tags") or [])
            for candidate in candidates:
                if candidate and candidate.lower() not in suggestions:
                    suggestions.append(candidate.lower())

        return suggestions[:limit]

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except OpenSearchException as e:
            logger.error("Keyword backend health check failed", error=redact(str(e), self._secrets))
            return False

    async def close(self) -> None:
        try:
            await self.client.close()
            logger.info("OpenSearch keyword client closed")
        except Exception as e:
            logger.error("Failed to close OpenSearch keyword client", error=str(e))
