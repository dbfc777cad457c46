"""
Column builders: pre-sized, row-indexed, null-aware write targets.

One builder per schema entry. Storage is allocated once at the final row
count; every row starts null and becomes valid when ``set`` writes to it.
A row holds only what was logged at exactly that timestamp: nothing is
carried forward from earlier rows.
"""

from typing import Any

import numpy as np
import pyarrow as pa

from .decoders import DECODERS
from .errors import ParseError
from .schema import SchemaEntry
from .table import Column


class ColumnBuilder:
    """Mutable accumulator for a single column, used only during pass 2."""

    def __init__(self, entry: SchemaEntry, row_count: int):
        self.entry = entry
        self.row_count = row_count
        dtype = entry.column_type.numpy_dtype
        if dtype == object:
            self.values = np.full(row_count, None, dtype=object)
        else:
            self.values = np.zeros(row_count, dtype=dtype)
        self.valid = np.zeros(row_count, dtype=np.bool_)
        self.overwrites = 0
        self._accepts = DECODERS[entry.column_type].accepts
        self._finished = False

    def set(self, row: int, value: Any):
        """
        Store ``value`` at ``row``. A second write to the same row replaces
        the first (last write wins) and is counted in ``overwrites``.

        Raises:
            ParseError: value shape does not match the column type.
            RuntimeError: builder already finished.
        """
        if self._finished:
            raise RuntimeError(f"Column {self.entry.name!r} is already finished")
        if not self._accepts(value):
            raise ParseError(
                f"Value of type {type(value).__name__} does not match column "
                f"{self.entry.name!r} ({self.entry.column_type.value})",
                entry_id=self.entry.entry_id,
            )
        if self.valid[row]:
            self.overwrites += 1
        self.values[row] = value
        self.valid[row] = True

    def finish(self) -> Column:
        """
        Convert storage into an immutable Arrow-backed Column. No writes
        afterwards.

        Fixed-width columns carry the validity mask as Arrow nulls; object
        columns already hold None in every unwritten row.
        """
        self._finished = True
        arrow_type = self.entry.column_type.arrow_type
        if self.values.dtype == object:
            data = pa.array(self.values, type=arrow_type)
        else:
            data = pa.array(self.values, type=arrow_type, mask=~self.valid)
        return Column(
            name=self.entry.name,
            column_type=self.entry.column_type,
            entry_id=self.entry.entry_id,
            data=data,
        )
