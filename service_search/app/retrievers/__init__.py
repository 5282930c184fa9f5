"""Retrieval helpers shared by the search branches.

``cache_keys`` builds deterministic response cache keys; ``records`` reads
canonical records used to enrich semantic hits.
"""
