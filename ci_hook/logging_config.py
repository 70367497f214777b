"""Structured logging configuration using structlog.

Provides a single ``configure_logging`` entry-point that sets up structlog
processors and configures the stdlib root logger to emit structured JSON
or human-readable console output.

Logs always go to stderr: the hook's stdout is relayed to the pushing
client and is reserved for the dispatch report.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def configure_logging(
    *,
    json_logs: bool = False,
    log_level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        json_logs: When *True*, render logs as JSON. When *False* (default),
            use a plain console renderer without colours, since the output
            ends up on the pushing user's terminal via git.
        log_level: Root log level name (e.g. ``"INFO"``, ``"DEBUG"``).
        stream: Destination stream, defaults to ``sys.stderr``.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())
