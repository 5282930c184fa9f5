"""Cache key construction for search responses.

Keys are deterministic and side-effect free: the query is trimmed and
lower-cased, filters are reduced to set values in canonical order, and the
result is hashed so keys have a fixed length regardless of input size.
"""

import hashlib
import json
from typing import Any, Dict

from ..models import SearchRequest


class QueryCacheKeyBuilder:
    """Builds namespaced cache keys such as ``search:search:<sha256>``."""

    def __init__(self, namespace: str = "search"):
        self.namespace = namespace

    @staticmethod
    def normalize_query(query_text: str) -> str:
        return query_text.strip().lower()

    @staticmethod
    def _digest(payload: Dict[str, Any]) -> str:
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def canonical_payload(self, request: SearchRequest) -> Dict[str, Any]:
        return {
            "query": self.normalize_query(request.query_text),
            "filters": request.filters.as_dict(),
            "type": request.document_type.value,
            "page": request.page_index,
            "size": request.page_size,
            "mode": request.mode.value,
        }

    def search_key(self, request: SearchRequest) -> str:
        return f"{self.namespace}:search:{self._digest(self.canonical_payload(request))}"

    def suggest_key(self, query_text: str, limit: int) -> str:
        payload = {"query": self.normalize_query(query_text), "limit": limit}
        return f"{self.namespace}:suggest:{self._digest(payload)}"

    def namespace_pattern(self) -> str:
        """Glob matching every key this builder can produce."""
        return f"{self.namespace}:*"
