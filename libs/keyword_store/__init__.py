"""Full-text keyword search clients.

Primary components:
- ``base``: abstract ``KeywordSearchClient`` and hit/page types.
- ``settings``: per-document-type ``IndexSettings`` and catalog defaults.
- ``filters``: structured filter compilation.
- ``opensearch``: OpenSearch implementation.
- ``factory``: construction from ``SearchConfig``.
"""
