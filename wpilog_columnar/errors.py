"""
Error types for the WPILog decoder.

Every error carries structured context so callers can branch on
``error.kind`` instead of parsing message text:

    offset    byte offset (from the start of the span) of the record or
              field that triggered the error, or None
    entry_id  entry id of the offending record, or None
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Category of a decoder failure."""

    INVALID_FORMAT = "invalid_format"
    PARSE = "parse"
    SCHEMA = "schema"
    INVALID_ENTRY = "invalid_entry"
    IO = "io"


class WpilogError(Exception):
    """Base class for all decoder errors."""

    kind: ErrorKind = ErrorKind.PARSE

    def __init__(
        self,
        message: str,
        *,
        offset: Optional[int] = None,
        entry_id: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.entry_id = entry_id

    def __str__(self) -> str:
        context = []
        if self.offset is not None:
            context.append(f"offset {self.offset}")
        if self.entry_id is not None:
            context.append(f"entry {self.entry_id}")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class InvalidFormatError(WpilogError):
    """Bad magic, unsupported version or truncated file header."""

    kind = ErrorKind.INVALID_FORMAT


class ParseError(WpilogError):
    """Malformed record framing, truncated payload or payload/type mismatch."""

    kind = ErrorKind.PARSE


class UnexpectedEndError(ParseError):
    """A read asked for more bytes than remain in the span."""


class SchemaError(WpilogError):
    """No entries discovered, or an entry was redefined incompatibly."""

    kind = ErrorKind.SCHEMA


class InvalidEntryError(WpilogError):
    """Data record for an entry id that was never started or is finished."""

    kind = ErrorKind.INVALID_ENTRY


class WpilogIOError(WpilogError):
    """The byte source could not be opened or read."""

    kind = ErrorKind.IO
