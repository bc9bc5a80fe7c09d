"""Structlog-based logging for org-hierarchy.

Library code logs structured events through structlog; only the CLI prints.
Events go to stderr so they never mix with rendered query results.
"""
from __future__ import annotations

import sys
from typing import Literal

import logging
import structlog

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _stderr_logger(*args):
    # Resolved per call so redirected streams (tests, CLI runners) are honoured
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(level: LogLevel | str = "WARNING", json: bool = True) -> None:
    numeric_level = getattr(logging, str(level).upper(), logging.WARNING)
    logging.basicConfig(format="%(message)s", level=numeric_level)

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "org_hierarchy"):
    return structlog.get_logger(name)


# Initialize default config
configure_logging()
