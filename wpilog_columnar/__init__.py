"""
WPILog Columnar

Decodes WPILib data logs (.wpilog) into a dense, time-aligned table: one
row per distinct data timestamp, one column per logged entry, nulls where an
entry was not written at that instant.

Two passes over an immutable byte span: the first discovers the schema and
the timestamp index, the second decodes payloads into pre-sized columns.
"""

__version__ = "0.1.0"

from .column_types import ColumnType, resolve_type
from .errors import (
    ErrorKind,
    InvalidEntryError,
    InvalidFormatError,
    ParseError,
    SchemaError,
    UnexpectedEndError,
    WpilogError,
    WpilogIOError,
)
from .models import LogHeader, ParseOptions, SkippedRecord
from .pipeline import infer_schema, infer_schema_file, parse, parse_file
from .schema import Schema, SchemaEntry
from .source import open_span
from .table import Column, Table

__all__ = [
    "Column",
    "ColumnType",
    "ErrorKind",
    "InvalidEntryError",
    "InvalidFormatError",
    "LogHeader",
    "ParseError",
    "ParseOptions",
    "Schema",
    "SchemaEntry",
    "SchemaError",
    "SkippedRecord",
    "Table",
    "UnexpectedEndError",
    "WpilogError",
    "WpilogIOError",
    "infer_schema",
    "infer_schema_file",
    "open_span",
    "parse",
    "parse_file",
    "resolve_type",
]
