"""Structured logging configuration for the search subsystem.

Logs are rendered by ``structlog`` as JSON (aggregation) or console output
(local development). Every line carries the service name, and string values
are scrubbed of URL credentials and configured secrets before rendering, so
backend error text can be logged as-is.

Typical usage
- Call ``configure_logging(service_name, log_level, log_format, secrets)`` once
- Acquire loggers via ``structlog.get_logger(name)``
"""

import logging
import sys
from typing import Any, Callable, Dict, Iterable, List

import structlog
from structlog.stdlib import LoggerFactory, add_logger_name

from libs.common.errors import redact

LOG_FORMATS = ("json", "console")


def redact_processor(secrets: Iterable[str] = ()) -> Callable[..., Dict[str, Any]]:
    """Build a processor that redacts credentials from string event values."""
    secret_values: List[str] = [secret for secret in secrets if secret]

    def processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        for key, value in event_dict.items():
            if isinstance(value, str):
                event_dict[key] = redact(value, secret_values)
        return event_dict

    return processor


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
    secrets: Iterable[str] = ()
) -> None:
    """Configure structured logging for a service.

    Parameters
    - service_name: Logical service identifier bound to each log line
    - log_level: ``DEBUG``, ``INFO``, ``WARNING``, ``ERROR`` (case-insensitive)
    - log_format: ``json`` for production; ``console`` for local dev
    - secrets: Credential values to mask wherever they appear in a log line
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {log_format}")

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_logger_name,
        redact_processor(secrets),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def log_performance(operation: str, duration_ms: float, **kwargs: Any) -> None:
    """Log the duration of a backend call or other unit of work."""
    structlog.get_logger("performance").debug(
        f"Operation {operation} completed",
        operation=operation,
        duration_ms=round(duration_ms, 3),
        **kwargs
    )
