# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Parsing of service values into timezone-aware timestamps."""

from __future__ import annotations

from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo

__all__ = ["TimestampParser"]


class TimestampParser:
    """Parses strings and epoch numbers into aware ``datetime`` values.

    Strings are parsed with ``datetime.strptime(value, format)`` when a
    *format* is given, otherwise as ISO-8601.  Naive results are placed in
    *default_timezone*.  Integers and floats are seconds since the epoch.
    """

    def __init__(self, format: str | None = None, default_timezone: str = "UTC") -> None:
        """Initialize with an optional ``strptime`` format and a default zone name."""
        self._format = format
        self._default_tz: tzinfo = UTC if default_timezone == "UTC" else ZoneInfo(default_timezone)

    @property
    def format(self) -> str | None:
        """The ``strptime`` format, or ``None`` for ISO-8601."""
        return self._format

    def parse(self, value: object) -> datetime:
        """Parse *value* into an aware ``datetime``.

        Raises:
            ValueError: If a string does not match the format.
            TypeError: If *value* is neither a string nor a number.

        """
        if isinstance(value, bool):
            raise TypeError("Cannot parse a boolean as a timestamp")
        if isinstance(value, int | float):
            return datetime.fromtimestamp(value, tz=UTC)
        if not isinstance(value, str):
            raise TypeError(f"Cannot parse {type(value).__name__} as a timestamp")
        parsed = datetime.fromisoformat(value) if self._format is None else datetime.strptime(value, self._format)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self._default_tz)
        return parsed
