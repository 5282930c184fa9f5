"""Compile structured filters into keyword-engine predicates."""

from typing import Any, Dict, List, Optional

import structlog

from .settings import IndexSettings

logger = structlog.get_logger("keyword_store.filters")


def compile_filters(settings: IndexSettings, filters: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Build ``bool.filter`` clauses for one index.

    The clauses form a conjunction. A list value (e.g. tags) becomes a single
    ``terms`` clause, which matches any of its values. Fields the index
    cannot filter on are dropped; unset values are ignored.
    """
    clauses: List[Dict[str, Any]] = []
    for name, value in sorted((filters or {}).items()):
        if value is None or value == []:
            continue

        field_name = settings.resolve_filter_field(name)
        if field_name is None:
            logger.debug("Filter not applicable to index", field=name, index=settings.document_type)
            continue

        if isinstance(value, (list, tuple, set)):
            clauses.append({"terms": {field_name: sorted(value)}})
        else:
            clauses.append({"term": {field_name: value}})
    return clauses
