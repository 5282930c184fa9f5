"""Error taxonomy shared by the search subsystem.

``ValidationError`` fails fast before any backend call. ``SearchBackendError``
wraps keyword/vector backend failures. ``EnrichmentError`` marks a single
record that could not be fetched during semantic enrichment. ``CacheError`` is
raised inside cache stores and never escapes them. ``SearchUnavailable`` is
raised when no branch of a search produced results.
"""

import re
from dataclasses import dataclass
from typing import Dict, Generic, Iterable, Optional, TypeVar
from urllib.parse import urlsplit, urlunsplit

T = TypeVar("T")

_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)(?P<userinfo>[^/@\s]+)@")


class SearchError(Exception):
    """Base exception for search subsystem errors."""
    pass


class ValidationError(SearchError, ValueError):
    """Malformed search request."""
    pass


class SearchBackendError(SearchError):
    """Keyword or vector backend unreachable or erroring."""

    def __init__(self, backend: str, message: str):
        super().__init__(f"{backend} backend error: {message}")
        self.backend = backend
        self.message = message


class EnrichmentError(SearchError):
    """Record fetch failed for one id during semantic enrichment."""

    def __init__(self, record_id: str, message: str):
        super().__init__(f"Enrichment failed for {record_id}: {message}")
        self.record_id = record_id


class CacheError(SearchError):
    """Cache backend failure. Always swallowed by cache stores."""
    pass


class SearchUnavailable(SearchError):
    """No branch of the search produced results."""

    def __init__(self, failures: Dict[str, SearchBackendError]):
        detail = "; ".join(f"{name}: {error.message}" for name, error in failures.items())
        super().__init__(f"Search unavailable ({detail})" if detail else "Search unavailable")
        self.failures = failures


@dataclass
class BranchOutcome(Generic[T]):
    """Result-or-error value for one backend branch."""
    name: str
    value: Optional[T] = None
    error: Optional[SearchBackendError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def redact_url(url: str) -> str:
    """Strip the password from a connection URL."""
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.hostname or ""
    if parts.username:
        netloc = f"{parts.username}:***@{netloc}"
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def redact(message: str, secrets: Iterable[str] = ()) -> str:
    """Remove URL credentials and known secret values from a message."""
    cleaned = _URL_CREDENTIALS.sub(r"\g<scheme>***@", message)
    for secret in secrets:
        if secret:
            cleaned = cleaned.replace(secret, "***")
    return cleaned
