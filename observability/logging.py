"""Logging configuration shared by the readiness checks.

stdlib ``logging`` carries the records to stdout while ``structlog`` renders
each event as a single JSON line, which is what container log collectors
expect from an init step.
"""

from __future__ import annotations

import json
import logging
import sys
from functools import partial

import structlog

get_logger = structlog.get_logger

DEFAULT_LEVEL = "INFO"

_configured = False


def _resolve_level(level: str | int | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level!r}")
    return resolved


def configure_logging(level: str | int | None = DEFAULT_LEVEL) -> None:
    """Configure stdlib logging and structlog.

    Safe to call more than once: the handler is attached only on the first
    call, later calls just adjust the root level.
    """
    global _configured
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(
                serializer=partial(json.dumps, ensure_ascii=False)
            ),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
    _configured = True
