"""Hybrid search components for semantic + keyword ranking.

Includes the ``HybridSearchOrchestrator`` which runs the full-text and vector
branches concurrently and merges their results.
"""
