"""Structured logging configuration using structlog.

confcap itself only emits. Applications call setup_logging() once to render
confcap's events, and the stdlib records of the file watcher underneath it,
through one structlog pipeline.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Third-party loggers confcap drives. watchfiles reports every batch at INFO
# and rust-side problems at WARNING.
BRIDGED_LOGGERS = ("watchfiles",)


def setup_logging(*, json_output: bool = True, log_level: str = "INFO") -> None:
    """Configure structlog for confcap's log events.

    Args:
        json_output: If True, render logs as JSON. If False, use dev-friendly console output.
        log_level: Minimum log level to emit (DEBUG, INFO, WARNING, ERROR).
            Bridged stdlib loggers never go below WARNING.
    """
    level = logging.getLevelNamesMapping()[log_level.upper()]
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    for name in BRIDGED_LOGGERS:
        bridged = logging.getLogger(name)
        bridged.handlers = [handler]
        bridged.setLevel(max(level, logging.WARNING))
        bridged.propagate = False
