# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Row-at-a-time builder of Arrow record batches.

``PageBuilder`` collects values cell by cell for the current row,
``add_record()`` commits the row, and ``build()`` converts everything
collected so far into a ``pyarrow.RecordBatch`` of the builder's schema.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

import pyarrow as pa

__all__ = ["Column", "PageBuilder"]

Column = int | str
"""A column addressed by index or by field name."""


class PageBuilder:
    """Builds ``pyarrow.RecordBatch`` values of a fixed schema row by row.

    Cells of the current row that are never set are null.  Values are
    converted to the field type when the batch is built, so a value that
    does not fit its field raises ``pyarrow.ArrowInvalid`` /
    ``pyarrow.ArrowTypeError`` from ``build()``.
    """

    def __init__(self, schema: pa.Schema) -> None:
        """Initialize an empty builder for *schema*."""
        self._schema = schema
        self._columns: list[list[Any]] = [[] for _ in schema]
        self._row: list[Any] = [None] * len(schema)

    @property
    def schema(self) -> pa.Schema:
        """The schema of built batches."""
        return self._schema

    @property
    def num_rows(self) -> int:
        """Number of committed rows not yet built."""
        return len(self._columns[0]) if self._columns else 0

    def index_of(self, column: Column) -> int:
        """Resolve *column* to a field index.

        Raises:
            KeyError: If no such column exists.

        """
        if isinstance(column, int):
            if not 0 <= column < len(self._schema):
                raise KeyError(f"Column index {column} out of range for {len(self._schema)} columns")
            return column
        index = self._schema.get_field_index(column)
        if index < 0:
            raise KeyError(f"Unknown column: {column!r}")
        return index

    def field(self, column: Column) -> pa.Field:
        """Return the schema field of *column*."""
        return self._schema.field(self.index_of(column))

    # -- Setters -------------------------------------------------------------

    def set_null(self, column: Column) -> None:
        """Set *column* of the current row to null."""
        self._row[self.index_of(column)] = None

    def set_float(self, column: Column, value: float) -> None:
        """Set *column* of the current row to a float."""
        self._row[self.index_of(column)] = float(value)

    def set_int(self, column: Column, value: int) -> None:
        """Set *column* of the current row to an integer."""
        self._row[self.index_of(column)] = int(value)

    def set_bool(self, column: Column, value: bool) -> None:
        """Set *column* of the current row to a boolean."""
        self._row[self.index_of(column)] = bool(value)

    def set_str(self, column: Column, value: str) -> None:
        """Set *column* of the current row to a string."""
        self._row[self.index_of(column)] = value

    def set_timestamp(self, column: Column, value: datetime) -> None:
        """Set *column* of the current row to a timestamp."""
        self._row[self.index_of(column)] = value

    def set_json(self, column: Column, value: Any) -> None:
        """Store *value* serialized as compact JSON text."""
        self._row[self.index_of(column)] = json.dumps(value, separators=(",", ":"))

    # -- Rows and batches ----------------------------------------------------

    def add_record(self) -> None:
        """Commit the current row and start a new, all-null one."""
        for values, cell in zip(self._columns, self._row, strict=True):
            values.append(cell)
        self._row = [None] * len(self._schema)

    def build(self) -> pa.RecordBatch:
        """Convert the committed rows into a record batch and reset the builder."""
        arrays = [pa.array(values, type=f.type) for values, f in zip(self._columns, self._schema, strict=True)]
        self._columns = [[] for _ in self._schema]
        return pa.RecordBatch.from_arrays(arrays, schema=self._schema)
