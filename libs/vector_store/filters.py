"""Metadata predicates for vector queries.

A ``VectorFilter`` is a conjunction of field equalities plus an optional
disjunction over tag membership: ``framework = x AND category = y AND
(t1 in tags OR t2 in tags)``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class VectorFilter:
    equals: Dict[str, Any] = field(default_factory=dict)
    any_tags: List[str] = field(default_factory=list)

    @classmethod
    def from_fields(
        cls,
        framework: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Optional["VectorFilter"]:
        """Build a filter from the structured fields the vector index carries.

        Returns ``None`` when nothing constrains the query.
        """
        equals = {}
        if framework:
            equals["framework"] = framework
        if category:
            equals["category"] = category
        vector_filter = cls(equals=equals, any_tags=list(tags or []))
        return None if vector_filter.is_empty() else vector_filter

    def is_empty(self) -> bool:
        return not self.equals and not self.any_tags

    def matches(self, metadata: Dict[str, Any]) -> bool:
        """Evaluate the predicate against a metadata mapping."""
        for name, expected in self.equals.items():
            if metadata.get(name) != expected:
                return False
        if self.any_tags:
            tags = metadata.get("tags") or []
            if not any(tag in tags for tag in self.any_tags):
                return False
        return True

    def to_opensearch(self, prefix: str = "meta") -> List[Dict[str, Any]]:
        """Compile to OpenSearch ``bool.filter`` clauses."""
        clauses: List[Dict[str, Any]] = [
            {"term": {f"{prefix}.{name}": value}}
            for name, value in sorted(self.equals.items())
        ]
        if self.any_tags:
            clauses.append({"terms": {f"{prefix}.tags": list(self.any_tags)}})
        return clauses
