# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Structured logging for the retry helpers.

:class:`RetryHelperJsonFormatter` renders records as single-line JSON.  The
fields attached to retry warnings are grouped under a typed ``"retry"``
object::

    {"timestamp": "2026-01-05T10:00:00.123000+00:00", "level": "WARNING",
     "logger": "retryhelper.direct",
     "message": "Retrying 2/7 after 2 seconds. Message: ...",
     "retry": {"count": 2, "limit": 7, "wait_seconds": 2.0,
               "error_type": "HTTPStatusError"}}

:func:`configure_logging` attaches a stderr handler with either this
formatter or a plain text one.

This module is **not** auto-imported by ``retryhelper``; import it explicitly::

    from retryhelper.logging_utils import configure_logging
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any, Literal, TextIO

__all__ = ["RetryHelperJsonFormatter", "configure_logging"]

# extra field -> (key inside "retry", converter)
_RETRY_FIELDS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "retry_count": ("count", int),
    "retry_limit": ("limit", int),
    "retry_wait": ("wait_seconds", float),
    "error_type": ("error_type", str),
}

_RECORD_ATTRS: frozenset[str] = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}

_TEXT_FORMAT = "%(asctime)s %(name)-28s %(levelname)-7s %(message)s"


class RetryHelperJsonFormatter(logging.Formatter):
    """Single-line JSON formatter with a nested ``"retry"`` object.

    ``timestamp`` is ISO-8601 in UTC.  Retry fields are converted to their
    declared types (a value that does not convert is dropped).  Other
    ``extra`` fields go under ``"context"``.  An attached exception is
    rendered as ``{"type", "message", "traceback"}``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a single-line JSON string."""
        obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        retry = _retry_fields(record)
        if retry:
            obj["retry"] = retry
        context = {
            k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS and k not in _RETRY_FIELDS
        }
        if context:
            obj["context"] = context
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            obj["exception"] = {
                "type": type(exc).__name__,
                "message": str(exc),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(obj, default=str)


def _retry_fields(record: logging.LogRecord) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for attr, (key, convert) in _RETRY_FIELDS.items():
        if attr not in record.__dict__:
            continue
        try:
            out[key] = convert(record.__dict__[attr])
        except (TypeError, ValueError):
            continue
    return out


def configure_logging(
    level: str | int = "WARNING",
    *,
    log_format: Literal["text", "json"] = "text",
    loggers: Iterable[str] = ("retryhelper",),
    stream: TextIO | None = None,
) -> logging.Handler:
    """Attach one stream handler to *loggers* at *level*.

    Args:
        level: Level name or number, e.g. ``"DEBUG"``.
        log_format: ``"json"`` for :class:`RetryHelperJsonFormatter`,
            ``"text"`` for a one-line human-readable format.
        loggers: Logger names to configure.
        stream: Destination; ``sys.stderr`` by default.

    Returns:
        The handler that was attached, so callers can remove it again.

    Raises:
        ValueError: If *level* is not a known level name.

    """
    if isinstance(level, str):
        levels = logging.getLevelNamesMapping()
        if level.upper() not in levels:
            raise ValueError(f"Unknown log level: {level!r}")
        level = levels[level.upper()]
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    if log_format == "json":
        handler.setFormatter(RetryHelperJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    for name in loggers:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.addHandler(handler)
    return handler
