"""Base vector search client interface.

Defines the abstract contract the orchestrator depends on, independent of the
backing vector engine. Text is embedded by the client itself ("auto-embed"),
so callers only ever deal with raw text, ids and metadata.

All methods are asynchronous. Backend failures surface as
``SearchBackendError`` with ``backend == "vector"``.
"""

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .filters import VectorFilter

BACKEND_NAME = "vector"


@dataclass
class VectorMatch:
    """A nearest-neighbour hit. ``score`` is a similarity in ``[0, 1]``."""
    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorDocument:
    """A record to embed and upsert."""
    id: str
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorStats:
    """Index statistics."""
    count: int
    dimension: int
    pending_count: int
    size_bytes: int


def build_searchable_text(metadata: Dict[str, Any]) -> str:
    """Compose the text that gets embedded for a catalog record."""
    tags = metadata.get("tags") or []
    parts = [
        metadata.get("name") or metadata.get("title") or "",
        metadata.get("description") or "",
        f"Framework: {metadata['framework']}" if metadata.get("framework") else "",
        f"Category: {metadata['category']}" if metadata.get("category") else "",
        f"Tags: {', '.join(tags)}" if tags else "",
    ]
    return " | ".join(part for part in parts if part)


def content_hash(text: str) -> str:
    """Stable digest of embedded text, used to detect stale vectors."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class VectorSearchClient(ABC):
    """Abstract base class for vector similarity engines."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create the index if it does not exist."""
        pass

    @abstractmethod
    async def upsert(self, id: str, raw_text: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Embed ``raw_text`` and store it under ``id`` (replacing any prior vector)."""
        pass

    @abstractmethod
    async def batch_upsert(self, documents: List[VectorDocument]) -> int:
        """Embed and store many documents. Returns the number stored."""
        pass

    @abstractmethod
    async def query(
        self,
        query_text: str,
        top_k: int = 10,
        filter: Optional[VectorFilter] = None
    ) -> List[VectorMatch]:
        """Return up to ``top_k`` matches sorted by descending similarity."""
        pass

    @abstractmethod
    async def find_similar(self, id: str, top_k: int = 5) -> List[VectorMatch]:
        """Nearest neighbours of a stored vector, excluding itself.

        Unknown ids return an empty list.
        """
        pass

    @abstractmethod
    async def delete(self, id: str) -> bool:
        """Delete a vector. Returns ``True`` if it existed."""
        pass

    @abstractmethod
    async def stats(self) -> VectorStats:
        """Index statistics."""
        pass

    @abstractmethod
    async def reset(self) -> None:
        """Drop every stored vector."""
        pass

    async def health_check(self) -> bool:
        """Check whether the backend answers."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
        return None
