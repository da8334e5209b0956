# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Service records: the values a REST service returns for one row.

A ``ServiceRecord`` is looked up with a ``ValueLocator`` and yields a
``ServiceValue`` that converts itself into the column types of a
``PageBuilder``.  ``JsonServiceRecord`` implements this over a parsed JSON
document; locators address fields by top-level name or by JSON Pointer
(RFC 6901).
"""

from __future__ import annotations

import abc
import json
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Final

from retryhelper.timestamp import TimestampParser

__all__ = [
    "JsonPointerLocator",
    "JsonServiceRecord",
    "JsonServiceValue",
    "ServiceRecord",
    "ServiceValue",
    "TopLevelLocator",
    "ValueLocator",
]


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()
"""Returned by ``ValueLocator.seek`` when the addressed value does not exist."""


# ---------------------------------------------------------------------------
# Abstract record / value / locator
# ---------------------------------------------------------------------------


class ServiceValue(abc.ABC):
    """One value of a service record."""

    @abc.abstractmethod
    def is_null(self) -> bool:
        """Whether the value is null."""
        ...

    @abc.abstractmethod
    def as_float(self) -> float:
        """Return the value as a float."""
        ...

    @abc.abstractmethod
    def as_int(self) -> int:
        """Return the value as an integer."""
        ...

    @abc.abstractmethod
    def as_bool(self) -> bool:
        """Return the value as a boolean."""
        ...

    @abc.abstractmethod
    def as_str(self) -> str:
        """Return the value as a string."""
        ...

    @abc.abstractmethod
    def as_timestamp(self, parser: TimestampParser) -> datetime:
        """Return the value parsed into an aware datetime by *parser*."""
        ...

    @abc.abstractmethod
    def as_json(self) -> Any:
        """Return the value as a JSON-compatible Python object."""
        ...


class ValueLocator(abc.ABC):
    """Addresses one value inside a record's document."""

    @abc.abstractmethod
    def seek(self, document: Any) -> Any:
        """Return the addressed node of *document*, or ``MISSING``."""
        ...


class ServiceRecord(abc.ABC):
    """One row as returned by the service."""

    @abc.abstractmethod
    def value(self, locator: ValueLocator) -> ServiceValue | None:
        """Return the value at *locator*, or ``None`` if it does not exist."""
        ...


# ---------------------------------------------------------------------------
# Locators
# ---------------------------------------------------------------------------


class TopLevelLocator(ValueLocator):
    """Addresses a top-level field of a JSON object by name."""

    def __init__(self, name: str) -> None:
        """Initialize with the field name."""
        self.name = name

    def seek(self, document: Any) -> Any:
        """Return ``document[name]`` or ``MISSING``."""
        if isinstance(document, Mapping) and self.name in document:
            return document[self.name]
        return MISSING

    def __repr__(self) -> str:
        return f"TopLevelLocator({self.name!r})"


class JsonPointerLocator(ValueLocator):
    """Addresses a node by JSON Pointer, e.g. ``/user/addresses/0/city``."""

    def __init__(self, pointer: str) -> None:
        """Initialize with an RFC 6901 pointer.

        Raises:
            ValueError: If *pointer* is neither empty nor starts with ``/``.

        """
        if pointer and not pointer.startswith("/"):
            raise ValueError(f"JSON Pointer must be empty or start with '/': {pointer!r}")
        self.pointer = pointer
        # ~1 before ~0, so that "~01" decodes to "~1"
        self._tokens = [t.replace("~1", "/").replace("~0", "~") for t in pointer.split("/")[1:]]

    def seek(self, document: Any) -> Any:
        """Walk the pointer tokens through *document*."""
        node = document
        for token in self._tokens:
            if isinstance(node, Mapping):
                if token not in node:
                    return MISSING
                node = node[token]
            elif isinstance(node, Sequence) and not isinstance(node, str):
                if not token.isdigit() or (len(token) > 1 and token.startswith("0")):
                    return MISSING
                index = int(token)
                if index >= len(node):
                    return MISSING
                node = node[index]
            else:
                return MISSING
        return node

    def __repr__(self) -> str:
        return f"JsonPointerLocator({self.pointer!r})"


# ---------------------------------------------------------------------------
# JSON implementation
# ---------------------------------------------------------------------------


class JsonServiceValue(ServiceValue):
    """A node of a parsed JSON document."""

    def __init__(self, node: Any) -> None:
        """Wrap a parsed JSON node."""
        self._node = node

    def is_null(self) -> bool:
        """JSON ``null``."""
        return self._node is None

    def as_float(self) -> float:
        """Numbers and numeric strings; booleans are rejected."""
        if isinstance(self._node, bool) or not isinstance(self._node, int | float | str):
            raise TypeError(f"Cannot convert {_describe(self._node)} to float")
        return float(self._node)

    def as_int(self) -> int:
        """Integers, integral floats and integer strings; fractional floats are truncated."""
        if isinstance(self._node, bool) or not isinstance(self._node, int | float | str):
            raise TypeError(f"Cannot convert {_describe(self._node)} to int")
        return int(self._node)

    def as_bool(self) -> bool:
        """Booleans and the strings ``"true"`` / ``"false"``."""
        if isinstance(self._node, bool):
            return self._node
        if isinstance(self._node, str) and self._node.lower() in ("true", "false"):
            return self._node.lower() == "true"
        raise TypeError(f"Cannot convert {_describe(self._node)} to bool")

    def as_str(self) -> str:
        """Strings as-is; any other node as compact JSON text."""
        if isinstance(self._node, str):
            return self._node
        return json.dumps(self._node, separators=(",", ":"))

    def as_timestamp(self, parser: TimestampParser) -> datetime:
        """Strings and epoch numbers, as accepted by *parser*."""
        return parser.parse(self._node)

    def as_json(self) -> Any:
        """The parsed node itself."""
        return self._node

    def __repr__(self) -> str:
        return f"JsonServiceValue({self._node!r})"


class JsonServiceRecord(ServiceRecord):
    """A record backed by a parsed JSON document (usually an object)."""

    def __init__(self, document: Any) -> None:
        """Wrap a parsed JSON document."""
        self._document = document

    @classmethod
    def from_text(cls, text: str | bytes) -> JsonServiceRecord:
        """Parse *text* as JSON.

        Raises:
            json.JSONDecodeError: If *text* is not valid JSON.

        """
        return cls(json.loads(text))

    @property
    def document(self) -> Any:
        """The wrapped document."""
        return self._document

    def value(self, locator: ValueLocator) -> JsonServiceValue | None:
        node = locator.seek(self._document)
        if node is MISSING:
            return None
        return JsonServiceValue(node)


def _describe(node: Any) -> str:
    return f"JSON {type(node).__name__} {node!r}"
