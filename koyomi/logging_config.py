"""
Structured logging configuration using structlog wrapping stdlib.

Provides JSON-formatted structured log output in production and
human-readable console output in development, plus ``trace_span`` for
timing gateway calls and slot searches.

Usage:
    from koyomi.logging_config import setup_logging, trace_span
    setup_logging()

    with trace_span("availability.find_free_slots", days=7):
        ...
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    if level is None:
        level = os.environ.get("KOYOMI_LOG_LEVEL", "INFO")

    if json_output is None:
        json_output = os.environ.get("KOYOMI_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

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
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# Stdlib-backed: silent until setup_logging attaches a handler.
_span_logger = structlog.wrap_logger(
    logging.getLogger("koyomi.trace"),
    wrapper_class=structlog.stdlib.BoundLogger,
)


@contextmanager
def trace_span(name: str, **fields) -> Iterator[None]:
    """Time a block and log one ``span.finished`` event when it exits.

    ``name`` and ``fields`` are bound into structlog contextvars for the
    duration of the block, so log lines emitted inside carry them too.
    Exceptions propagate unchanged; the span is marked ``status=error``.
    """
    start = time.monotonic()
    status = "ok"
    with structlog.contextvars.bound_contextvars(span=name, **fields):
        try:
            yield
        except BaseException as e:
            status = "error"
            _span_logger.debug("span.failed", error=type(e).__name__)
            raise
        finally:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            _span_logger.debug("span.finished", duration_ms=elapsed_ms, status=status)


__all__ = ["get_logger", "setup_logging", "trace_span"]
