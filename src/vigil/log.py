"""Structured logging setup using structlog.

Log records always go to stderr.  Standard output carries exactly one
verdict line per run and is parsed by monitoring orchestrators.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

from .config import DEFAULT_LOG_LEVEL


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog with JSON or console renderer.

    Args:
        level: Log level name (e.g. "DEBUG").  Falls back to the
            ``VIGIL_LOG_LEVEL`` environment variable, then WARNING.
        fmt: Renderer format ("json" or "console").  Falls back to the
            ``VIGIL_LOG_FORMAT`` environment variable, then console.
    """
    level_name = level or os.getenv("VIGIL_LOG_LEVEL") or DEFAULT_LOG_LEVEL
    log_level = getattr(logging, level_name.upper(), logging.WARNING)
    log_format = (fmt or os.getenv("VIGIL_LOG_FORMAT") or "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)
