"""Common utilities shared across the search subsystem.

Includes:
- ``config``: Pydantic-based configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers.
- ``errors``: error taxonomy and branch result values.

Import pattern:
- from libs.common.config import SearchConfig
- from libs.common.logging import configure_logging
"""
