"""
Data models shared by the decoder stages.

Stages communicate via these dataclasses. Kept minimal: only fields that are
actually used downstream.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .errors import ErrorKind


# ---------------------------------------------------------------------------
# Stage 0: File header
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LogHeader:
    """Decoded WPILog file header."""
    version: int                    # raw u16, e.g. 0x0100 for v1.0
    extra_header: str               # free-form text written by the logger
    data_offset: int                # offset of the first record

    @property
    def version_string(self) -> str:
        return f"{self.version >> 8}.{self.version & 0xFF}"


# ---------------------------------------------------------------------------
# Stage 1: Framed records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RawRecord:
    """One framed record. Payload is a zero-copy view into the span."""
    entry_id: int                   # 0 = control record
    timestamp: int                  # microseconds, signed 64-bit
    payload: Union[bytes, memoryview]
    offset: int                     # offset of the record's control byte

    @property
    def is_control(self) -> bool:
        return self.entry_id == 0


# ---------------------------------------------------------------------------
# Configuration and reporting
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParseOptions:
    """
    Runtime behavior of a parse.

    strict=True aborts on the first malformed or orphaned data record.
    strict=False skips such records and reports them on Table.skipped.
    Header, schema and control-record failures are fatal either way.
    """
    strict: bool = True


@dataclass(frozen=True)
class SkippedRecord:
    """A data record dropped in lenient mode."""
    offset: Optional[int]
    entry_id: Optional[int]
    timestamp: Optional[int]
    kind: ErrorKind
    message: str
