"""Shared fixtures for the search subsystem tests."""

import pytest
from prometheus_client import CollectorRegistry

from libs.cache.memory import InMemoryCacheStore
from libs.common.config import SearchConfig
from libs.common.metrics import MetricsCollector
from libs.vector_store.base import VectorMatch
from service_search.app.hybrid.search_manager import HybridSearchOrchestrator

from .fakes import FakeKeywordClient, FakeRecordStore, FakeVectorClient, component_record, keyword_hit


@pytest.fixture
def config():
    return SearchConfig(search_cache_ttl=300, search_max_page_size=100, search_enrichment_concurrency=2)


@pytest.fixture
def metrics():
    return MetricsCollector("test-search", registry=CollectorRegistry())


@pytest.fixture
def cache():
    return InMemoryCacheStore()


@pytest.fixture
def keyword_client():
    return FakeKeywordClient({
        "components": [keyword_hit("A", 0.9), keyword_hit("B", 0.5)],
    })


@pytest.fixture
def vector_client():
    return FakeVectorClient([
        VectorMatch(id="B", score=0.8, metadata={"type": "component"}),
        VectorMatch(id="C", score=0.6, metadata={"type": "component"}),
    ])


@pytest.fixture
def record_store():
    return FakeRecordStore({
        "A": component_record("A"),
        "B": component_record("B"),
        "C": component_record("C"),
    })


@pytest.fixture
def orchestrator(keyword_client, vector_client, cache, record_store, config, metrics):
    return HybridSearchOrchestrator(
        keyword_client=keyword_client,
        vector_client=vector_client,
        cache=cache,
        record_store=record_store,
        config=config,
        metrics=metrics
    )
