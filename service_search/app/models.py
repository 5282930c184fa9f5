"""Request, hit, and response models for the search orchestrator.

Hits form a tagged union on ``type`` so each document type can carry its own
fields while sharing ``id``, ``title``, ``description`` and ``score``.
Engine-native fields travel untouched in ``raw_metadata``.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated


class DocumentType(str, Enum):
    """Logical document types; ``all`` selects every concrete type."""
    ALL = "all"
    COMPONENTS = "components"
    DOCS = "docs"
    RESOURCES = "resources"

    def selected(self) -> List["DocumentType"]:
        if self is DocumentType.ALL:
            return [DocumentType.COMPONENTS, DocumentType.DOCS, DocumentType.RESOURCES]
        return [self]

    @property
    def hit_type(self) -> str:
        return _HIT_TYPES.get(self.value, "resource")


_HIT_TYPES = {
    "components": "component",
    "docs": "documentation",
    "resources": "resource",
}


class SearchMode(str, Enum):
    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


class SearchFilters(BaseModel):
    """Structured filters. Unknown keys are kept as extra equality filters."""
    model_config = ConfigDict(extra="allow")

    framework: Optional[str] = Field(None, description="Framework equality")
    category: Optional[str] = Field(None, description="Category equality")
    tags: List[str] = Field(default_factory=list, description="Match any of these tags")
    is_free: Optional[bool] = None
    is_premium: Optional[bool] = None
    has_typescript: Optional[bool] = None
    has_tests: Optional[bool] = None
    is_published: Optional[bool] = None
    is_featured: Optional[bool] = None

    def as_dict(self) -> Dict[str, Any]:
        """Set filters only, with tags sorted for canonical ordering."""
        values = {
            name: value
            for name, value in self.model_dump(exclude_none=True).items()
            if value != []
        }
        if "tags" in values:
            values["tags"] = sorted(values["tags"])
        return values


class SearchRequest(BaseModel):
    """A search call. Bounds are enforced by the orchestrator."""
    query_text: str = Field(..., description="Search query")
    document_type: DocumentType = Field(DocumentType.ALL, description="Document type to search")
    filters: SearchFilters = Field(default_factory=SearchFilters, description="Structured filters")
    page_size: int = Field(20, description="Hits per page")
    page_index: int = Field(0, description="Zero-based page index")
    use_cache: bool = Field(True, description="Read and write the response cache")
    mode: SearchMode = Field(SearchMode.HYBRID, description="Backends to query")


class BaseHit(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    url: Optional[str] = None
    framework: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    score: float
    highlight_fragments: Optional[Dict[str, str]] = None
    raw_metadata: Dict[str, Any] = Field(default_factory=dict)


class ComponentHit(BaseHit):
    type: Literal["component"] = "component"
    author: Optional[str] = None


class DocHit(BaseHit):
    type: Literal["documentation"] = "documentation"
    doc_kind: Optional[str] = None


class ResourceHit(BaseHit):
    type: Literal["resource"] = "resource"
    resource_type: Optional[str] = None
    frameworks: List[str] = Field(default_factory=list)


SearchHit = Annotated[Union[ComponentHit, DocHit, ResourceHit], Field(discriminator="type")]


class SearchResponse(BaseModel):
    hits: List[SearchHit]
    total_hits: int
    page_index: int
    total_pages: int
    elapsed_ms: float
    mode_used: SearchMode
    degraded: bool = False
    failed_branches: List[str] = Field(default_factory=list)


def build_hit(
    hit_type: str,
    fields: Dict[str, Any],
    id: str,
    score: float,
    highlight_fragments: Optional[Dict[str, str]] = None,
    raw_metadata: Optional[Dict[str, Any]] = None
) -> BaseHit:
    """Map catalog fields (keyword source or upstream record) onto a hit."""
    frameworks = list(fields.get("frameworks") or [])
    common = {
        "id": id,
        "title": fields.get("name") or fields.get("title") or "",
        "description": fields.get("description") or (fields.get("content") or "")[:200],
        "url": fields.get("url") or fields.get("demo_url"),
        "framework": fields.get("framework") or (frameworks[0] if frameworks else None),
        "category": fields.get("category"),
        "tags": list(fields.get("tags") or []),
        "score": score,
        "highlight_fragments": highlight_fragments or None,
        "raw_metadata": raw_metadata if raw_metadata is not None else dict(fields),
    }

    if hit_type == "component":
        return ComponentHit(author=fields.get("author"), **common)
    if hit_type == "documentation":
        return DocHit(doc_kind=fields.get("doc_kind") or fields.get("type"), **common)
    return ResourceHit(resource_type=fields.get("resource_type"), frameworks=frameworks, **common)
