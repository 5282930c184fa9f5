"""Cache stores with TTL expiry and pattern deletes.

Primary components:
- ``base``: abstract ``CacheStore`` contract and ``CacheEntry``.
- ``memory``: in-process dictionary store.
- ``redis_store``: shared Redis store.
- ``factory``: picks the backend from configuration.
"""
