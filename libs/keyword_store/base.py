"""Base keyword search client interface.

One logical index per document type. Scores returned by ``search`` are the
engine's native relevance values and are not on the same scale as vector
similarities.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

BACKEND_NAME = "keyword"


@dataclass
class KeywordHit:
    id: str
    score: float
    document_type: str
    highlight_fragments: Dict[str, str] = field(default_factory=dict)
    raw_fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class KeywordPage:
    hits: List[KeywordHit]
    total_hits: int


class KeywordSearchClient(ABC):
    """Abstract base class for full-text engines."""

    @abstractmethod
    async def configure(self) -> None:
        """Push index settings for every document type."""
        pass

    @abstractmethod
    async def index(self, document_type: str, documents: List[Dict[str, Any]]) -> int:
        """Upsert documents keyed by their ``id``. Returns the number stored."""
        pass

    @abstractmethod
    async def search(
        self,
        document_type: str,
        query_text: str,
        filters: Optional[Dict[str, Any]] = None,
        page_size: int = 20,
        page_index: int = 0
    ) -> KeywordPage:
        """Search one document type's index."""
        pass

    @abstractmethod
    async def clear(self, document_type: Optional[str] = None) -> None:
        """Remove all documents from one index, or from all of them."""
        pass

    @abstractmethod
    async def stats(self) -> Dict[str, int]:
        """Document counts keyed by document type."""
        pass

    @abstractmethod
    async def suggest(self, query_text: str, limit: int = 5) -> List[str]:
        """Lower-cased names and tags of the best partial matches."""
        pass

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        return None
