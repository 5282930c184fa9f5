"""Shared libraries for the hybrid search subsystem."""
