"""
Column summaries: null share plus Welford single-pass mean/variance.

Used by the ``info`` command. Only non-null values of numeric scalar
columns feed the accumulator; NaN and inf are ignored.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .constants import MICROSECONDS_PER_SECOND
from .table import Column, Table


@dataclass
class WelfordAccumulator:
    """
    Running mean/variance with O(1) memory.

    ``update_array`` folds in a whole numpy batch using the pairwise
    combination of (count, mean, M2).
    """
    count: int = 0
    mean: float = 0.0
    m2: float = 0.0
    min_val: float = float('inf')
    max_val: float = float('-inf')

    def update_array(self, values: np.ndarray):
        batch = np.asarray(values, dtype=np.float64)
        batch = batch[np.isfinite(batch)]
        n = len(batch)
        if n == 0:
            return
        batch_mean = float(batch.mean())
        batch_m2 = float(((batch - batch_mean) ** 2).sum())
        total = self.count + n
        delta = batch_mean - self.mean
        self.m2 += batch_m2 + delta * delta * self.count * n / total
        self.mean += delta * n / total
        self.count = total
        self.min_val = min(self.min_val, float(batch.min()))
        self.max_val = max(self.max_val, float(batch.max()))

    @property
    def std(self) -> float:
        """Sample standard deviation (0 below two samples)."""
        if self.count < 2:
            return 0.0
        return math.sqrt(self.m2 / (self.count - 1))

    def to_dict(self) -> dict:
        empty = self.count == 0
        return {
            "count": self.count,
            "mean": None if empty else round(self.mean, 6),
            "std": round(self.std, 6),
            "min": None if empty else round(self.min_val, 6),
            "max": None if empty else round(self.max_val, 6),
        }


@dataclass
class ColumnSummary:
    name: str
    type_name: str
    rows: int
    null_count: int
    numeric: Optional[WelfordAccumulator] = field(default=None)

    @property
    def null_pct(self) -> float:
        return 100.0 * self.null_count / self.rows if self.rows else 0.0


def summarize_column(column: Column) -> ColumnSummary:
    summary = ColumnSummary(
        name=column.name,
        type_name=column.column_type.value,
        rows=len(column),
        null_count=column.null_count,
    )
    if column.column_type.is_numeric:
        acc = WelfordAccumulator()
        acc.update_array(column.data.drop_null().to_numpy(zero_copy_only=False))
        summary.numeric = acc
    return summary


def summarize_table(table: Table) -> dict:
    """Row count, time range and average sample interval of a table."""
    info = {
        "rows": table.row_count,
        "columns": table.width,
        "start_us": None,
        "end_us": None,
        "duration_s": 0.0,
        "avg_interval_us": None,
    }
    if table.row_count:
        start = int(table.timestamps[0])
        end = int(table.timestamps[-1])
        info["start_us"] = start
        info["end_us"] = end
        info["duration_s"] = (end - start) / MICROSECONDS_PER_SECOND
        if table.row_count > 1:
            info["avg_interval_us"] = (end - start) / (table.row_count - 1)
    return info
