"""
Sparse merge (pass 2).

Re-walks the records, decodes every data record against its column's type
and writes it into that column's builder at the row of its timestamp.
Start/Finish records are replayed so a data record is only accepted while
its entry is active.

Strict mode raises the first ParseError / InvalidEntryError. Lenient mode
records it as a SkippedRecord and moves on. Pass 1 has already rejected
every schema-level problem, so control records never fail here.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .builders import ColumnBuilder
from .control import FinishRecord, StartRecord, decode_control
from .cursor import ByteSpan
from .decoders import decode_record
from .errors import InvalidEntryError, ParseError, WpilogError
from .models import ParseOptions, RawRecord, SkippedRecord
from .records import iter_records
from .schema import SchemaInference

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    builders: List[ColumnBuilder]
    skipped: List[SkippedRecord] = field(default_factory=list)

    @property
    def overwrites(self) -> int:
        return sum(b.overwrites for b in self.builders)


class SparseMerger:
    """
    Accumulates data records into pre-sized builders.

    Usage:
        merger = SparseMerger(inference, options)
        result = merger.run(span)
    """

    def __init__(self, inference: SchemaInference, options: Optional[ParseOptions] = None):
        self.inference = inference
        self.options = options or ParseOptions()
        self.builders: Dict[int, ColumnBuilder] = {
            entry.entry_id: ColumnBuilder(entry, inference.row_count)
            for entry in inference.schema
        }
        self.active: Set[int] = set()
        self.skipped: List[SkippedRecord] = []

    def run(self, span: ByteSpan) -> MergeResult:
        records = iter_records(span, self.inference.header)
        while True:
            try:
                record = next(records)
            except StopIteration:
                break
            except ParseError as e:
                # framing errors end the record stream either way
                self._reject(e, timestamp=None)
                break

            try:
                if record.is_control:
                    self._apply_control(record)
                else:
                    self._write(record)
            except (ParseError, InvalidEntryError) as e:
                self._reject(e, timestamp=record.timestamp)

        ordered = [self.builders[e.entry_id] for e in self.inference.schema]
        return MergeResult(builders=ordered, skipped=self.skipped)

    def _apply_control(self, record: RawRecord):
        control = decode_control(record)
        if isinstance(control, StartRecord):
            self.active.add(control.entry_id)
        elif isinstance(control, FinishRecord):
            self.active.discard(control.entry_id)

    def _write(self, record: RawRecord):
        builder = self.builders.get(record.entry_id)
        if builder is None:
            raise InvalidEntryError(
                f"Data record for entry {record.entry_id}, which was never started",
                offset=record.offset,
                entry_id=record.entry_id,
            )
        if record.entry_id not in self.active:
            raise InvalidEntryError(
                f"Data record for inactive entry {record.entry_id} ({builder.entry.name})",
                offset=record.offset,
                entry_id=record.entry_id,
            )

        row = self.inference.row_index[record.timestamp]
        value = decode_record(builder.entry.column_type, record)
        try:
            builder.set(row, value)
        except ParseError as e:
            raise ParseError(e.message, offset=record.offset, entry_id=record.entry_id) from e

    def _reject(self, error: WpilogError, timestamp: Optional[int]):
        if self.options.strict:
            raise error
        logger.warning("Skipping record: %s", error)
        self.skipped.append(SkippedRecord(
            offset=error.offset,
            entry_id=error.entry_id,
            timestamp=timestamp,
            kind=error.kind,
            message=error.message,
        ))


def merge(span: ByteSpan, inference: SchemaInference,
          options: Optional[ParseOptions] = None) -> MergeResult:
    """Run pass 2 over the span."""
    return SparseMerger(inference, options).run(span)
