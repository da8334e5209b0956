# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Column writers: copy one value of a ``ServiceRecord`` into a ``PageBuilder``.

Each writer is responsible for one column.  A missing or null value is
written as null; otherwise the value is converted to the column's type.
``SchemaWriter`` groups one writer per column and commits whole rows.
"""

from __future__ import annotations

import abc
from collections.abc import Iterable, Mapping, Sequence

import pyarrow as pa

from retryhelper.page import Column, PageBuilder
from retryhelper.record import ServiceRecord, ServiceValue, TopLevelLocator, ValueLocator
from retryhelper.timestamp import TimestampParser

__all__ = [
    "BooleanColumnWriter",
    "ColumnWriter",
    "DoubleColumnWriter",
    "JsonColumnWriter",
    "LongColumnWriter",
    "SchemaWriter",
    "StringColumnWriter",
    "TimestampColumnWriter",
]


class ColumnWriter(abc.ABC):
    """Writes the value found at *locator* into *column*."""

    def __init__(self, column: Column, locator: ValueLocator) -> None:
        """Initialize with the target column and the locator of its value."""
        self.column = column
        self.locator = locator

    def write(self, record: ServiceRecord, page_builder: PageBuilder) -> None:
        """Copy the value from *record* into the current row of *page_builder*."""
        value = record.value(self.locator)
        if value is None or value.is_null():
            page_builder.set_null(self.column)
        else:
            self._write_value(value, page_builder)

    @abc.abstractmethod
    def _write_value(self, value: ServiceValue, page_builder: PageBuilder) -> None: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.column!r}, {self.locator!r})"


class DoubleColumnWriter(ColumnWriter):
    """Writes the value as a 64-bit float."""

    def _write_value(self, value: ServiceValue, page_builder: PageBuilder) -> None:
        page_builder.set_float(self.column, value.as_float())


class LongColumnWriter(ColumnWriter):
    """Writes the value as a 64-bit integer."""

    def _write_value(self, value: ServiceValue, page_builder: PageBuilder) -> None:
        page_builder.set_int(self.column, value.as_int())


class BooleanColumnWriter(ColumnWriter):
    """Writes the value as a boolean."""

    def _write_value(self, value: ServiceValue, page_builder: PageBuilder) -> None:
        page_builder.set_bool(self.column, value.as_bool())


class StringColumnWriter(ColumnWriter):
    """Writes the value as text; non-string JSON nodes become compact JSON."""

    def _write_value(self, value: ServiceValue, page_builder: PageBuilder) -> None:
        page_builder.set_str(self.column, value.as_str())


class JsonColumnWriter(ColumnWriter):
    """Writes the value as JSON text, whatever its JSON type."""

    def _write_value(self, value: ServiceValue, page_builder: PageBuilder) -> None:
        page_builder.set_json(self.column, value.as_json())


class TimestampColumnWriter(ColumnWriter):
    """Writes the value parsed by *parser* as a timestamp."""

    def __init__(self, column: Column, locator: ValueLocator, parser: TimestampParser) -> None:
        """Initialize with the target column, the locator, and the timestamp parser."""
        super().__init__(column, locator)
        self.parser = parser

    def _write_value(self, value: ServiceValue, page_builder: PageBuilder) -> None:
        page_builder.set_timestamp(self.column, value.as_timestamp(self.parser))


class SchemaWriter:
    """Writes all columns of a record and commits the row."""

    def __init__(self, writers: Iterable[ColumnWriter]) -> None:
        """Initialize with one writer per column."""
        self.writers: Sequence[ColumnWriter] = tuple(writers)

    @classmethod
    def for_schema(
        cls,
        schema: pa.Schema,
        locators: Mapping[str, ValueLocator] | None = None,
        parser: TimestampParser | None = None,
    ) -> SchemaWriter:
        """Choose a writer for each field from its Arrow type.

        Args:
            schema: Schema of the page builder.
            locators: Locator per field name; fields not listed are read from
                the top-level member of the same name.
            parser: Parser for timestamp fields; ISO-8601 in UTC by default.

        Raises:
            TypeError: If a field type has no matching writer.

        """
        locators = locators or {}
        parser = parser if parser is not None else TimestampParser()
        writers: list[ColumnWriter] = []
        for f in schema:
            locator = locators.get(f.name, TopLevelLocator(f.name))
            writers.append(_writer_for(f, locator, parser))
        return cls(writers)

    def write(self, record: ServiceRecord, page_builder: PageBuilder) -> None:
        """Write every column of *record* and commit the row."""
        for writer in self.writers:
            writer.write(record, page_builder)
        page_builder.add_record()

    def write_all(self, records: Iterable[ServiceRecord], page_builder: PageBuilder) -> int:
        """Write *records* one row each; return how many were written."""
        count = 0
        for record in records:
            self.write(record, page_builder)
            count += 1
        return count


def _writer_for(f: pa.Field, locator: ValueLocator, parser: TimestampParser) -> ColumnWriter:
    t = f.type
    if pa.types.is_floating(t):
        return DoubleColumnWriter(f.name, locator)
    if pa.types.is_integer(t):
        return LongColumnWriter(f.name, locator)
    if pa.types.is_boolean(t):
        return BooleanColumnWriter(f.name, locator)
    if pa.types.is_timestamp(t):
        return TimestampColumnWriter(f.name, locator, parser)
    if pa.types.is_string(t) or pa.types.is_large_string(t):
        return StringColumnWriter(f.name, locator)
    raise TypeError(f"No column writer for field {f.name!r} of type {t}")
