"""
Output table: an Arrow table with the timestamp column first, then one
column per entry in order of first Start.

Each data field carries its entry id and logical column type as Arrow field
metadata, so ``Table.data`` can be handed to any Arrow consumer (parquet,
polars, pandas) without losing where a column came from.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pyarrow as pa

from .column_types import ColumnType
from .constants import TIMESTAMP_COLUMN
from .models import LogHeader, SkippedRecord

logger = logging.getLogger(__name__)

ENTRY_ID_KEY = b"wpilog.entry_id"
COLUMN_TYPE_KEY = b"wpilog.column_type"


def _same_cell(mine: Any, theirs: Any) -> bool:
    """Python-level cell equality where NaN equals NaN, also inside lists."""
    if isinstance(mine, list) and isinstance(theirs, list):
        return len(mine) == len(theirs) and all(
            _same_cell(a, b) for a, b in zip(mine, theirs)
        )
    if isinstance(mine, float) and isinstance(theirs, float):
        return mine == theirs or (math.isnan(mine) and math.isnan(theirs))
    return mine == theirs


def _same_values(mine: pa.Array, theirs: pa.Array) -> bool:
    if mine.equals(theirs):
        return True
    # Arrow never treats NaN as equal to NaN; fall back to a cell walk
    return len(mine) == len(theirs) and all(
        _same_cell(a, b) for a, b in zip(mine.to_pylist(), theirs.to_pylist())
    )


# ---------------------------------------------------------------------------
# Column
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Column:
    """One entry's values, aligned to the table rows. Nulls are Arrow nulls."""
    name: str
    column_type: ColumnType
    entry_id: int
    data: pa.Array

    def __len__(self) -> int:
        return len(self.data)

    @property
    def null_count(self) -> int:
        return self.data.null_count

    def is_null(self, row: int) -> bool:
        return not self.data[row].is_valid

    def get(self, row: int) -> Any:
        """Python value at ``row``, or None if null."""
        return self.data[row].as_py()

    def to_list(self) -> List[Any]:
        return self.data.to_pylist()

    def to_field(self) -> pa.Field:
        return pa.field(
            self.name,
            self.data.type,
            metadata={
                ENTRY_ID_KEY: str(self.entry_id).encode(),
                COLUMN_TYPE_KEY: self.column_type.value.encode(),
            },
        )

    @classmethod
    def from_arrow(cls, arrow_field: pa.Field, values) -> "Column":
        if isinstance(values, pa.ChunkedArray):
            values = values.combine_chunks()
        meta = arrow_field.metadata
        return cls(
            name=arrow_field.name,
            column_type=ColumnType(meta[COLUMN_TYPE_KEY].decode()),
            entry_id=int(meta[ENTRY_ID_KEY]),
            data=values,
        )

    def equals(self, other: "Column") -> bool:
        """Same identity, type, nulls and values (NaN equal to NaN)."""
        if (self.name, self.column_type, self.entry_id) != (
            other.name, other.column_type, other.entry_id
        ):
            return False
        return _same_values(self.data, other.data)


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Table:
    """Result of one full parse."""
    header: LogHeader
    data: pa.Table                                      # timestamp + entry columns
    skipped: Tuple[SkippedRecord, ...] = field(default_factory=tuple)
    overwrites: int = 0                                 # same-row writes replaced

    @property
    def row_count(self) -> int:
        return self.data.num_rows

    @property
    def column_names(self) -> List[str]:
        """Output column names, timestamp first."""
        return self.data.column_names

    @property
    def width(self) -> int:
        return self.data.num_columns

    @property
    def timestamps(self) -> np.ndarray:
        """int64 microseconds, ascending."""
        return self.data.column(0).to_numpy()

    @property
    def columns(self) -> Tuple[Column, ...]:
        schema = self.data.schema
        return tuple(
            Column.from_arrow(schema.field(i), self.data.column(i))
            for i in range(1, self.data.num_columns)
        )

    def _index_of(self, name: str) -> int:
        for i, col_name in enumerate(self.data.column_names[1:], start=1):
            if col_name == name:
                return i
        raise KeyError(name)

    def column(self, name: str) -> Column:
        """First data column called ``name``."""
        i = self._index_of(name)
        return Column.from_arrow(self.data.schema.field(i), self.data.column(i))

    def column_by_entry(self, entry_id: int) -> Column:
        for col in self.columns:
            if col.entry_id == entry_id:
                return col
        raise KeyError(entry_id)

    def select(self, names: Iterable[str]) -> "Table":
        """Keep only the named data columns, in the order given."""
        indices = [0] + [self._index_of(n) for n in names if n != TIMESTAMP_COLUMN]
        return replace(self, data=self.data.select(indices))

    def head(self, n: int) -> "Table":
        return replace(self, data=self.data.slice(0, max(n, 0)))

    def tail(self, n: int) -> "Table":
        start = max(self.row_count - max(n, 0), 0)
        return replace(self, data=self.data.slice(start))

    def rows(self) -> Iterator[Tuple[Any, ...]]:
        """Yield (timestamp, value, ...) tuples with None for nulls."""
        return zip(*(col.to_pylist() for col in self.data.columns))

    def to_dict(self) -> Dict[str, List[Any]]:
        """Column name -> Python list. Later duplicate names overwrite earlier."""
        return self.data.to_pydict()

    def equals(self, other: "Table") -> bool:
        if not self.data.schema.equals(other.data.schema, check_metadata=True):
            return False
        return all(
            _same_values(a.combine_chunks(), b.combine_chunks())
            for a, b in zip(self.data.columns, other.data.columns)
        )

    def __repr__(self) -> str:
        return f"Table(rows={self.row_count}, columns={self.column_names})"


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def assemble_table(
    header: LogHeader,
    timestamps: np.ndarray,
    builders: Sequence,
    skipped: Optional[Sequence[SkippedRecord]] = None,
) -> Table:
    """
    Finalize every builder (in schema order) and package the table.

    ``timestamps`` is already sorted and unique. A row no builder wrote to
    only saw records that were skipped, so it is dropped. A log with entries
    but no data records yields zero-length columns.
    """
    columns = [b.finish() for b in builders]
    ts = pa.array(np.asarray(timestamps, dtype=np.int64), type=pa.int64())
    for col in columns:
        if len(col) != len(ts):
            raise RuntimeError(
                f"Column {col.name!r} has {len(col)} rows, expected {len(ts)}"
            )

    arrays = [ts] + [col.data for col in columns]
    if builders and len(ts):
        written = np.logical_or.reduce([b.valid for b in builders])
        if not written.all():
            logger.debug("Dropping %d rows with no decoded values",
                         len(written) - int(written.sum()))
            keep = pa.array(written)
            arrays = [a.filter(keep) for a in arrays]

    schema = pa.schema(
        [pa.field(TIMESTAMP_COLUMN, pa.int64(), nullable=False)]
        + [col.to_field() for col in columns]
    )
    return Table(
        header=header,
        data=pa.Table.from_arrays(arrays, schema=schema),
        skipped=tuple(skipped or ()),
        overwrites=sum(b.overwrites for b in builders),
    )
