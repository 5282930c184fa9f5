"""Search service package.

Layout:
- ``hybrid``: keyword + semantic search orchestration.
- ``ranking``: result fusion.
- ``retrievers``: cache keys and upstream record access.
- ``runtime``: service-local metrics helpers.
- ``context``: wiring of backends, cache and orchestrator from configuration.
"""
