"""
structlog setup for processes embedding the collector.

Library code only ever calls ``structlog.get_logger()``; applications call
``configure_logging`` once at startup.
"""

import logging
from typing import Any

import orjson
import structlog


def _orjson_dumps(obj: Any, **kwargs: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


def configure_logging(level: str | int = "INFO", json: bool = False) -> None:
    """
    Configure structlog processors and output.

    Args:
        level: Minimum level to emit, name or numeric.
        json: Render one JSON object per line instead of console output.
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping()[level.upper()]

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer(serializer=_orjson_dumps))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
