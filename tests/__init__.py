"""Tests for the hybrid search subsystem.

Backends are replaced by in-process fakes (``tests.fakes``) or mocked
clients, so the suite runs without OpenSearch, Redis or PostgreSQL.
"""
