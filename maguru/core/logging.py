"""structlog configuration shared by the API, scripts and migrations."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_CONFIGURED = False

# Libraries that are chatty at INFO and add nothing to request logs
_QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "sqlalchemy.engine")


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: int | str = logging.INFO,
    *,
    service: str | None = None,
    json_logs: bool = True,
) -> None:
    """Configure structlog with contextvars support.

    JSON lines by default; ``json_logs=False`` renders for a terminal. When
    ``service`` is given every event carries it.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    numeric_level = _resolve_level(level)
    logging.basicConfig(level=numeric_level, format="%(message)s", stream=sys.stdout)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
    ]
    if service:
        processors.append(_bind_service(service))
    if json_logs:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def _bind_service(service: str) -> Any:
    def processor(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return processor
