"""OpenSearch k-NN vector search client."""

import time
from typing import Any, Dict, List, Optional

import structlog
from opensearchpy import AsyncOpenSearch
from opensearchpy.exceptions import NotFoundError, OpenSearchException
from opensearchpy.helpers import async_bulk

from libs.common.errors import SearchBackendError, redact
from libs.common.metrics import measure_time

from .base import (
    BACKEND_NAME,
    VectorDocument,
    VectorMatch,
    VectorSearchClient,
    VectorStats,
    content_hash,
)
from .embedding import EmbeddingClient
from .filters import VectorFilter

logger = structlog.get_logger("vector_store.opensearch")


def build_vector_index_body(vector_dimension: int) -> Dict[str, Any]:
    """Index mapping: HNSW cosine vectors plus keyword-typed metadata."""
    return {
        "mappings": {
            "dynamic_templates": [
                {
                    "meta_strings": {
                        "path_match": "meta.*",
                        "match_mapping_type": "string",
                        "mapping": {"type": "keyword"}
                    }
                }
            ],
            "properties": {
                "record_id": {"type": "keyword"},
                "vector": {
                    "type": "knn_vector",
                    "dimension": vector_dimension,
                    "method": {
                        "name": "hnsw",
                        "space_type": "cosinesimil",
                        "engine": "nmslib",
                        "parameters": {
                            "ef_construction": 128,
                            "m": 24
                        }
                    }
                },
                "text": {"type": "text", "index": False},
                "meta": {"type": "object"},
                "created_at": {"type": "date"},
                "updated_at": {"type": "date"}
            }
        },
        "settings": {
            "index": {
                "knn": True,
                "knn.algo_param.ef_search": 100,
                "number_of_shards": 1,
                "number_of_replicas": 0
            }
        }
    }


class OpenSearchVectorClient(VectorSearchClient):
    """Vector search over an OpenSearch k-NN index.

    Text is embedded through ``EmbeddingClient`` before every write and
    query. Each record is stored under its external id, so upserts replace.
    """

    def __init__(
        self,
        hosts: List[str],
        embedder: EmbeddingClient,
        index_name: str = "catalog_vectors",
        vector_dimension: int = 384,
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_certs: bool = False,
        ssl_assert_hostname: bool = False,
        ssl_show_warn: bool = False,
        timeout: float = 10.0,
        client: Optional[AsyncOpenSearch] = None
    ):
        """Initialize the client.

        Args:
            hosts: OpenSearch host URLs
            embedder: Embedding client used to vectorize text
            index_name: Name of the k-NN index
            vector_dimension: Dimension of the embedding vectors
            username: OpenSearch username
            password: OpenSearch password
            verify_certs: Whether to verify SSL certificates
            ssl_assert_hostname: Whether to assert hostname
            ssl_show_warn: Whether to show SSL warnings
            timeout: Per-request timeout in seconds
            client: Pre-built client (tests inject fakes here)
        """
        self.hosts = hosts
        self.embedder = embedder
        self.index_name = index_name
        self.vector_dimension = vector_dimension
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

        self._initialized = False

    def _backend_error(self, action: str, error: Exception) -> SearchBackendError:
        message = redact(str(error), self._secrets)
        logger.error(f"OpenSearch vector {action} failed", index_name=self.index_name, error=message)
        return SearchBackendError(BACKEND_NAME, f"{action} failed: {message}")

    async def initialize(self) -> None:
        """Create the k-NN index if it does not exist."""
        try:
            if not await self.client.indices.exists(index=self.index_name):
                await self.client.indices.create(
                    index=self.index_name,
                    body=build_vector_index_body(self.vector_dimension)
                )
                logger.info("OpenSearch vector index created", index_name=self.index_name)

            self._initialized = True
        except OpenSearchException as e:
            raise self._backend_error("initialize", e) from e

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    def _build_document(self, id: str, text: str, vector: List[float], metadata: Dict[str, Any]) -> Dict[str, Any]:
        now = int(time.time() * 1000)
        return {
            "record_id": id,
            "vector": vector,
            "text": text,
            "meta": {**metadata, "content_hash": content_hash(text)},
            "created_at": now,
            "updated_at": now
        }

    async def upsert(self, id: str, raw_text: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        await self._ensure_initialized()
        vector = (await self.embedder.embed([raw_text]))[0]

        try:
            await self.client.index(
                index=self.index_name,
                id=id,
                body=self._build_document(id, raw_text, vector.tolist(), metadata or {})
            )
        except OpenSearchException as e:
            raise self._backend_error("upsert", e) from e

        logger.info("Vector upserted", record_id=id)

    async def batch_upsert(self, documents: List[VectorDocument]) -> int:
        if not documents:
            return 0

        await self._ensure_initialized()
        vectors = await self.embedder.embed([doc.text for doc in documents])

        actions = [
            {
                "_index": self.index_name,
                "_id": doc.id,
                "_source": self._build_document(doc.id, doc.text, vector.tolist(), doc.metadata)
            }
            for doc, vector in zip(documents, vectors)
        ]

        try:
            success_count, failed_items = await async_bulk(self.client, actions, raise_on_error=False)
        except OpenSearchException as e:
            raise self._backend_error("batch upsert", e) from e

        if failed_items:
            logger.warning(
                "Some vectors failed to store",
                failed_count=len(failed_items),
                total_count=len(documents)
            )

        logger.info("Batch upserted vectors", count=success_count)
        return success_count

    async def _knn(
        self,
        vector: List[float],
        k: int,
        filter: Optional[VectorFilter] = None
    ) -> List[VectorMatch]:
        query: Dict[str, Any] = {
            "size": k,
            "_source": {"excludes": ["vector", "text"]},
            "query": {
                "bool": {
                    "must": [
                        {
                            "knn": {
                                "vector": {
                                    "vector": vector,
                                    "k": k
                                }
                            }
                        }
                    ],
                    "filter": filter.to_opensearch() if filter else []
                }
            }
        }

        response = await self.client.search(index=self.index_name, body=query)

        matches = []
        for hit in response["hits"]["hits"]:
            source = hit.get("_source", {})
            score = min(max(float(hit["_score"]), 0.0), 1.0)
            matches.append(VectorMatch(
                id=source.get("record_id", hit["_id"]),
                score=score,
                metadata=source.get("meta", {})
            ))
        return matches

    @measure_time("vector_query")
    async def query(
        self,
        query_text: str,
        top_k: int = 10,
        filter: Optional[VectorFilter] = None
    ) -> List[VectorMatch]:
        await self._ensure_initialized()
        embedding = await self.embedder.embed_query(query_text)

        try:
            matches = await self._knn(embedding.tolist(), top_k, filter)
        except OpenSearchException as e:
            raise self._backend_error("query", e) from e
        except (KeyError, TypeError, ValueError) as e:
            raise self._backend_error("query response parsing", e) from e

        logger.info("Vector query completed", results_count=len(matches), top_k=top_k)
        return matches

    async def find_similar(self, id: str, top_k: int = 5) -> List[VectorMatch]:
        await self._ensure_initialized()

        try:
            try:
                stored = await self.client.get(index=self.index_name, id=id, _source_includes=["vector"])
            except NotFoundError:
                logger.info("Vector not found for similarity lookup", record_id=id)
                return []

            vector = stored["_source"]["vector"]
            # One extra neighbour to account for the record itself.
            matches = await self._knn(vector, top_k + 1)
        except OpenSearchException as e:
            raise self._backend_error("find similar", e) from e
        except (KeyError, TypeError, ValueError) as e:
            raise self._backend_error("find similar response parsing", e) from e

        return [match for match in matches if match.id != id][:top_k]

    async def delete(self, id: str) -> bool:
        await self._ensure_initialized()

        try:
            response = await self.client.delete(index=self.index_name, id=id)
        except NotFoundError:
            logger.warning("Vector not found for delete", record_id=id)
            return False
        except OpenSearchException as e:
            raise self._backend_error("delete", e) from e

        return response.get("result") == "deleted"

    async def stats(self) -> VectorStats:
        await self._ensure_initialized()

        try:
            count_response = await self.client.count(index=self.index_name)
            index_stats = await self.client.indices.stats(index=self.index_name)
        except OpenSearchException as e:
            raise self._backend_error("stats", e) from e

        primaries = index_stats.get("_all", {}).get("primaries", {})
        return VectorStats(
            count=int(count_response.get("count", 0)),
            dimension=self.vector_dimension,
            pending_count=int(primaries.get("indexing", {}).get("index_current", 0)),
            size_bytes=int(primaries.get("store", {}).get("size_in_bytes", 0))
        )

    async def reset(self) -> None:
        try:
            await self.client.indices.delete(index=self.index_name, ignore=[404])
        except OpenSearchException as e:
            raise self._backend_error("reset", e) from e

        self._initialized = False
        await self.initialize()
        logger.warning("Vector index reset", index_name=self.index_name)

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except OpenSearchException as e:
            logger.error("Vector backend health check failed", error=redact(str(e), self._secrets))
            return False

    async def close(self) -> None:
        try:
            await self.client.close()
            logger.info("OpenSearch vector client closed")
        except Exception as e:
            logger.error("Failed to close OpenSearch vector client", error=str(e))
        await self.embedder.close()
