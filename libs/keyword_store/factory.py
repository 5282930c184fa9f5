"""Keyword search client factory."""

from libs.common.config import SearchConfig

from .base import KeywordSearchClient
from .opensearch import OpenSearchKeywordClient
from .settings import DEFAULT_INDEX_SETTINGS


def create_keyword_client_from_config(config: SearchConfig) -> KeywordSearchClient:
    """Create the keyword client described by ``SearchConfig``."""
    hosts = config.opensearch_host_list()
    if not hosts:
        raise ValueError("SEARCH_OPENSEARCH_HOSTS must list at least one host")

    return OpenSearchKeywordClient(
        hosts=hosts,
        index_prefix=config.search_keyword_index_prefix,
        settings=DEFAULT_INDEX_SETTINGS,
        username=config.search_opensearch_username,
        password=config.search_opensearch_password,
        verify_certs=config.search_opensearch_verify_certs,
        ssl_assert_hostname=config.search_opensearch_ssl_assert_hostname,
        ssl_show_warn=config.search_opensearch_ssl_show_warn,
        timeout=config.search_opensearch_timeout,
    )
