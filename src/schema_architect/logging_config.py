"""structlog configuration.

Logs go to stderr so stdout stays clean for diagrams. Warnings and above
by default; everything when SCHEMA_ARCHITECT_DEBUG is set. Set
SCHEMA_ARCHITECT_LOG_FILE to append plain (uncolored) logs to a file instead.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TextIO

import structlog

from schema_architect.config import ENV_LOG_FILE, is_debug_enabled

_log_stream: TextIO | None = None


def configure_logging(
    debug: bool | None = None, log_file: Path | None = None
) -> None:
    global _log_stream

    if debug is None:
        debug = is_debug_enabled()
    level = logging.DEBUG if debug else logging.WARNING

    if log_file is None and os.environ.get(ENV_LOG_FILE):
        log_file = Path(os.environ[ENV_LOG_FILE])

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        if _log_stream is not None and _log_stream is not sys.stderr:
            _log_stream.close()
        _log_stream = log_file.open("a", encoding="utf-8")
        colors = False
    else:
        _log_stream = sys.stderr
        colors = sys.stderr.isatty()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=_log_stream),
        cache_logger_on_first_use=False,
    )


def ensure_logging() -> None:
    """Configure logging unless something already did.

    structlog's defaults print to stdout, which would mix log lines into
    a piped diagram when a command runs outside ``main``.
    """
    if not structlog.is_configured():
        configure_logging()
