"""structlog setup for the project store.

Development runs get a colored console; every other environment emits one
JSON object per line. Request, caller and project ids travel through
contextvars so route and service code can log without passing them along.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

# Inline images arrive as base64 data URLs that can run to megabytes
DATA_URL_PREVIEW = 32

NOISY_LOGGERS = ("redis", "httpx", "httpcore", "uvicorn.access")


def shorten_data_urls(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace ``data:`` URL values with a short preview and their length."""
    for key, value in event_dict.items():
        if isinstance(value, str) and value.startswith("data:") and len(value) > DATA_URL_PREVIEW:
            event_dict[key] = f"{value[:DATA_URL_PREVIEW]}... ({len(value)} chars)"
    return event_dict


def build_processors(console: bool) -> list[structlog.typing.Processor]:
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        shorten_data_urls,
        structlog.processors.StackInfoRenderer(),
    ]
    if console:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    return processors


def setup_logging(debug: bool = False, level: str = "INFO") -> None:
    """Configure structlog on top of the stdlib root logger.

    Args:
        debug: Console output at DEBUG level instead of JSON lines.
        level: Root level name used when ``debug`` is off.
    """
    log_level = logging.DEBUG if debug else logging.getLevelName(level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level, force=True)

    structlog.configure(
        processors=build_processors(console=debug),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(request_id: str | None) -> None:
    """Tag subsequent log lines of this request with its correlation id."""
    if request_id:
        bind_contextvars(request_id=request_id)


def bind_user_context(user_id: str) -> None:
    """Tag subsequent log lines with the caller's account id.

    Display names are never bound; they are user-chosen and not needed
    for correlation.
    """
    bind_contextvars(user_id=user_id)


def bind_project_context(project_id: str, visibility: str | None = None) -> None:
    """Tag subsequent log lines with the project being read or written."""
    if visibility:
        bind_contextvars(project_id=project_id, visibility=visibility)
    else:
        bind_contextvars(project_id=project_id)


def clear_request_context() -> None:
    clear_contextvars()
