"""Per-document-type keyword index settings.

Each logical index declares which fields are searchable (earlier fields weigh
more), which are facets usable in filters, which numeric signals break ties
between equally relevant hits, and which fields get highlights or snippets.
The settings are pushed to the engine once by ``configure()``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

COMPONENTS = "components"
DOCS = "docs"
RESOURCES = "resources"


@dataclass
class IndexSettings:
    document_type: str
    hit_type: str
    searchable_fields: List[str]
    facet_fields: List[str] = field(default_factory=list)
    filter_only_fields: List[str] = field(default_factory=list)
    custom_ranking: List[Tuple[str, str]] = field(default_factory=list)
    highlight_fields: List[str] = field(default_factory=list)
    snippet_fields: Dict[str, int] = field(default_factory=dict)
    keyword_fields: List[str] = field(default_factory=list)
    distinct_field: Optional[str] = None
    filter_aliases: Dict[str, str] = field(default_factory=dict)

    def filterable_fields(self) -> List[str]:
        return list(self.facet_fields) + list(self.filter_only_fields)

    def search_field(self, name: str) -> str:
        """Field path used for full-text matching.

        Facets are keyword-typed for exact filtering and carry a ``text``
        subfield for matching.
        """
        return f"{name}.text" if name in self.facet_fields else name

    def field_boosts(self) -> List[str]:
        """Searchable fields with descending boosts by position."""
        total = len(self.searchable_fields)
        return [
            f"{self.search_field(name)}^{total - position}"
            for position, name in enumerate(self.searchable_fields)
        ]

    def resolve_filter_field(self, name: str) -> Optional[str]:
        """Map a structured filter name to this index's field, if filterable."""
        resolved = self.filter_aliases.get(name, name)
        return resolved if resolved in self.filterable_fields() else None

    def mappings(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {"id": {"type": "keyword"}}

        for name in self.searchable_fields:
            properties[name] = {"type": "text", "analyzer": "standard"}

        for name in self.facet_fields:
            properties[name] = {
                "type": "keyword",
                "fields": {"text": {"type": "text", "analyzer": "standard"}}
            }

        for name in self.keyword_fields:
            properties.setdefault(name, {"type": "keyword"})

        # Remaining filter-only fields are flags.
        for name in self.filter_only_fields:
            properties.setdefault(name, {"type": "boolean"})

        for name, _ in self.custom_ranking:
            properties.setdefault(name, {"type": "double"})

        for name in self.snippet_fields:
            properties.setdefault(name, {"type": "text", "analyzer": "standard"})

        return {"properties": properties}

    def index_body(self) -> Dict[str, Any]:
        return {
            "settings": {
                "index": {
                    "number_of_shards": 1,
                    "number_of_replicas": 0,
                    "refresh_interval": "1s"
                }
            },
            "mappings": self.mappings()
        }

    def sort_clause(self) -> List[Any]:
        """Relevance first, then custom ranking signals as tie-breakers."""
        clauses: List[Any] = ["_score"]
        for name, direction in self.custom_ranking:
            clauses.append({name: {"order": direction, "missing": "_last", "unmapped_type": "double"}})
        return clauses

    def highlight_clause(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {name: {} for name in self.highlight_fields}
        for name, size in self.snippet_fields.items():
            fields[name] = {"fragment_size": size, "number_of_fragments": 1}
        return {"fields": fields}


DEFAULT_INDEX_SETTINGS: Dict[str, IndexSettings] = {
    COMPONENTS: IndexSettings(
        document_type=COMPONENTS,
        hit_type="component",
        searchable_fields=["name", "description", "tags", "framework", "category", "author"],
        facet_fields=["framework", "category", "tags"],
        filter_only_fields=["is_free", "is_premium", "has_typescript", "has_tests"],
        custom_ranking=[("downloads", "desc"), ("favorites", "desc"), ("rating", "desc")],
        highlight_fields=["name", "description"],
        snippet_fields={"description": 50, "long_description": 100},
        keyword_fields=["demo_url", "url"],
    ),
    DOCS: IndexSettings(
        document_type=DOCS,
        hit_type="documentation",
        searchable_fields=["title", "content", "headings", "category", "tags"],
        facet_fields=["category", "tags"],
        filter_only_fields=["type"],
        highlight_fields=["title", "content"],
        snippet_fields={"content": 200},
        keyword_fields=["url", "type"],
        distinct_field="url",
    ),
    RESOURCES: IndexSettings(
        document_type=RESOURCES,
        hit_type="resource",
        searchable_fields=["name", "description", "tags", "resource_type", "frameworks"],
        facet_fields=["resource_type", "frameworks", "tags"],
        filter_only_fields=["is_published", "is_featured", "is_free", "is_premium", "has_typescript"],
        custom_ranking=[("views", "desc"), ("downloads", "desc")],
        keyword_fields=["demo_url", "url"],
        filter_aliases={"framework": "frameworks"},
    ),
}
