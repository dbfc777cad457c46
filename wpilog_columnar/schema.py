"""
Schema inference (pass 1).

Walks every record once, interprets control records, and produces:
  - an ordered column registry (one SchemaEntry per started entry id), and
  - the sorted set of distinct data-record timestamps, which fixes the row
    count and the timestamp -> row index used by pass 2.

Redefinition policy: a Start for an entry id that is already known must
repeat the same name and type token exactly. Anything else is a
SchemaError, whether the id is still active or was finished earlier. A
matching restart after Finish reuses the first column position.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set

import numpy as np

from .column_types import ColumnType, is_known_type, resolve_type
from .constants import CONTROL_ENTRY_ID
from .control import (
    FinishRecord,
    SetMetadataRecord,
    StartRecord,
    decode_control,
)
from .cursor import ByteSpan
from .errors import ParseError, SchemaError
from .models import LogHeader, ParseOptions, RawRecord
from .records import iter_records, read_header

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass
class SchemaEntry:
    """One output column, created by the first Start for its entry id."""
    entry_id: int
    name: str
    column_type: ColumnType
    type_token: str                 # wire token as written by the logger
    metadata: str = ""              # latest value from Start / SetMetadata
    position: int = 0               # column index in the output table
    active: bool = False            # started and not finished at end of stream


class Schema:
    """Ordered column registry with lookup by entry id."""

    def __init__(self, entries: Optional[List[SchemaEntry]] = None):
        self._entries: List[SchemaEntry] = []
        self._by_entry: Dict[int, SchemaEntry] = {}
        for entry in entries or []:
            self.add(entry)

    def add(self, entry: SchemaEntry) -> SchemaEntry:
        if entry.entry_id in self._by_entry:
            raise SchemaError(
                f"Entry {entry.entry_id} already registered", entry_id=entry.entry_id
            )
        entry.position = len(self._entries)
        self._entries.append(entry)
        self._by_entry[entry.entry_id] = entry
        return entry

    def get(self, entry_id: int) -> Optional[SchemaEntry]:
        return self._by_entry.get(entry_id)

    @property
    def entries(self) -> List[SchemaEntry]:
        return list(self._entries)

    @property
    def names(self) -> List[str]:
        return [e.name for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SchemaEntry]:
        return iter(self._entries)

    def __contains__(self, entry_id: int) -> bool:
        return entry_id in self._by_entry

    def __repr__(self) -> str:
        cols = ", ".join(f"{e.name}:{e.column_type.value}" for e in self._entries)
        return f"Schema([{cols}])"


@dataclass
class SchemaInference:
    """Everything pass 2 needs from pass 1."""
    header: LogHeader
    schema: Schema
    timestamps: np.ndarray                      # int64, strictly ascending
    row_index: Dict[int, int] = field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return len(self.timestamps)


# ---------------------------------------------------------------------------
# Start / Finish bookkeeping (shared with pass 2)
# ---------------------------------------------------------------------------

def check_start(schema: Schema, start: StartRecord, record: RawRecord) -> Optional[SchemaEntry]:
    """
    Return the existing entry a Start refers to, or None if the id is new.

    Raises SchemaError when the Start reuses an id with a different name or
    type, or uses the reserved control id.
    """
    if start.entry_id == CONTROL_ENTRY_ID:
        raise SchemaError(
            f"Start record for reserved entry id 0 ({start.name!r})",
            offset=record.offset,
            entry_id=start.entry_id,
        )
    existing = schema.get(start.entry_id)
    if existing is None:
        return None
    if existing.name != start.name or existing.type_token != start.type_token:
        raise SchemaError(
            f"Entry {start.entry_id} redefined from "
            f"{existing.name!r} ({existing.type_token}) to "
            f"{start.name!r} ({start.type_token})",
            offset=record.offset,
            entry_id=start.entry_id,
        )
    return existing


def _is_fatal_in_pass1(error: ParseError, options: ParseOptions) -> bool:
    # Control records and the strict policy always abort; a truncated
    # trailing data record only ends the walk in lenient mode.
    return options.strict or error.entry_id == CONTROL_ENTRY_ID


# ---------------------------------------------------------------------------
# Pass 1
# ---------------------------------------------------------------------------

def infer(span: ByteSpan, options: Optional[ParseOptions] = None) -> SchemaInference:
    """
    Run pass 1 over the span.

    Raises:
        InvalidFormatError: bad file header.
        ParseError: malformed control record or record framing.
        SchemaError: redefinition conflict, or no entries at all.
    """
    options = options or ParseOptions()
    header = read_header(span)
    schema = Schema()
    active: Set[int] = set()
    seen_timestamps: Set[int] = set()

    records = iter_records(span, header)
    while True:
        try:
            record = next(records)
        except StopIteration:
            break
        except ParseError as e:
            if _is_fatal_in_pass1(e, options):
                raise
            logger.warning("Stopping schema walk at truncated record: %s", e)
            break

        if not record.is_control:
            if record.entry_id in active:
                seen_timestamps.add(record.timestamp)
            continue

        control = decode_control(record)
        if isinstance(control, StartRecord):
            existing = check_start(schema, control, record)
            if existing is None:
                if not is_known_type(control.type_token):
                    logger.warning(
                        "Unknown type %r for entry %d (%s), storing as string",
                        control.type_token, control.entry_id, control.name,
                    )
                existing = schema.add(SchemaEntry(
                    entry_id=control.entry_id,
                    name=control.name,
                    column_type=resolve_type(control.type_token),
                    type_token=control.type_token,
                ))
            existing.metadata = control.metadata
            existing.active = True
            active.add(control.entry_id)
        elif isinstance(control, FinishRecord):
            if control.entry_id not in schema:
                logger.debug("Finish for unknown entry %d ignored", control.entry_id)
            else:
                schema.get(control.entry_id).active = False
            active.discard(control.entry_id)
        elif isinstance(control, SetMetadataRecord):
            entry = schema.get(control.entry_id)
            if entry is None:
                logger.debug("Metadata for unknown entry %d ignored", control.entry_id)
            else:
                entry.metadata = control.metadata

    if len(schema) == 0:
        raise SchemaError("No entries found in WPILOG data")

    ordered = sorted(seen_timestamps)
    timestamps = np.array(ordered, dtype=np.int64)
    row_index = {ts: row for row, ts in enumerate(ordered)}
    logger.debug("Pass 1: %d columns, %d rows", len(schema), len(timestamps))
    return SchemaInference(
        header=header,
        schema=schema,
        timestamps=timestamps,
        row_index=row_index,
    )
