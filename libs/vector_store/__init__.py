"""Vector search clients and utilities.

Primary components:
- ``base``: abstract ``VectorSearchClient`` interface and result types.
- ``filters``: metadata predicates for queries.
- ``embedding``: embedding service client used to auto-embed text.
- ``opensearch``: OpenSearch k-NN implementation of the interface.
- ``factory``: helpers to construct a client from typed config.

Guidance:
- Prefer constructing via ``factory.create_vector_client_from_config`` so
  callers remain decoupled from specific backends.
"""
