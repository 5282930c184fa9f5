"""Hybrid search subsystem for the component catalog."""
