"""
Payload decoders: one strategy per logical column type.

Each strategy pairs ``decode(payload) -> value`` with ``accepts(value)``,
the runtime shape check the column builders apply before storing. The table
is closed over ColumnType, so a missing entry is caught at import time.

Wire rules (all little-endian):
  - boolean: exactly 1 byte, nonzero is True
  - int64 / float / double: exactly 8 / 4 / 8 bytes
  - string: UTF-8, invalid sequences replaced (never fails)
  - numeric arrays: payload length is a whole number of elements
  - string[]: u32 count, then count u32-length-prefixed strings
  - raw / opaque: lowercase hex text of the payload bytes
"""

import struct
from typing import Any, Callable, Dict, List, NamedTuple, Union

import numpy as np

from .column_types import ColumnType
from .constants import BOOLEAN_WIDTH, FLOAT32_WIDTH, FLOAT64_WIDTH, INT64_WIDTH, STRING_LENGTH_WIDTH
from .cursor import ByteCursor
from .errors import ParseError, UnexpectedEndError
from .models import RawRecord

Payload = Union[bytes, memoryview]


class PayloadDecoder(NamedTuple):
    decode: Callable[[Payload], Any]
    accepts: Callable[[Any], bool]


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def _expect_size(payload: Payload, size: int, type_name: str):
    if len(payload) != size:
        raise ValueError(
            f"Invalid {type_name} size: expected {size} bytes, got {len(payload)}"
        )


def decode_boolean(payload: Payload) -> bool:
    _expect_size(payload, BOOLEAN_WIDTH, "boolean")
    return payload[0] != 0


def decode_int64(payload: Payload) -> int:
    _expect_size(payload, INT64_WIDTH, "int64")
    return struct.unpack("<q", payload)[0]


def decode_float32(payload: Payload) -> float:
    _expect_size(payload, FLOAT32_WIDTH, "float")
    return struct.unpack("<f", payload)[0]


def decode_float64(payload: Payload) -> float:
    _expect_size(payload, FLOAT64_WIDTH, "double")
    return struct.unpack("<d", payload)[0]


def decode_string(payload: Payload) -> str:
    return bytes(payload).decode("utf-8", errors="replace")


def decode_hex(payload: Payload) -> str:
    return bytes(payload).hex()


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------

def _numeric_array(wire_dtype: str, width: int, type_name: str) -> Callable[[Payload], np.ndarray]:
    native = np.dtype(wire_dtype).newbyteorder("=")

    def decode(payload: Payload) -> np.ndarray:
        if len(payload) % width != 0:
            raise ValueError(
                f"Invalid {type_name} size: {len(payload)} is not a multiple of {width}"
            )
        # frombuffer views the span; astype copies so the array outlives it
        return np.frombuffer(payload, dtype=wire_dtype).astype(native)

    return decode


def decode_boolean_array(payload: Payload) -> np.ndarray:
    return np.frombuffer(payload, dtype=np.uint8) != 0


def decode_string_array(payload: Payload) -> List[str]:
    cursor = ByteCursor(payload)
    try:
        count = cursor.read_u32()
        # every element needs at least its length prefix
        if count > cursor.remaining() // STRING_LENGTH_WIDTH:
            raise ValueError(f"Invalid string array size: {count}")
        return [cursor.read_string() for _ in range(count)]
    except UnexpectedEndError as e:
        raise ValueError(f"Truncated string array: {e.message}") from e


# ---------------------------------------------------------------------------
# Shape checks
# ---------------------------------------------------------------------------

def _is_bool(value) -> bool:
    return isinstance(value, (bool, np.bool_))


def _is_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not _is_bool(value)


def _is_float(value) -> bool:
    return isinstance(value, (float, np.floating))


def _is_str(value) -> bool:
    return isinstance(value, str)


def _array_of(dtype) -> Callable[[Any], bool]:
    expected = np.dtype(dtype)

    def accepts(value) -> bool:
        return isinstance(value, np.ndarray) and value.ndim == 1 and value.dtype == expected

    return accepts


def _is_str_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


DECODERS: Dict[ColumnType, PayloadDecoder] = {
    ColumnType.BOOLEAN: PayloadDecoder(decode_boolean, _is_bool),
    ColumnType.INT64: PayloadDecoder(decode_int64, _is_int),
    ColumnType.FLOAT32: PayloadDecoder(decode_float32, _is_float),
    ColumnType.FLOAT64: PayloadDecoder(decode_float64, _is_float),
    ColumnType.STRING: PayloadDecoder(decode_string, _is_str),
    ColumnType.RAW: PayloadDecoder(decode_hex, _is_str),
    ColumnType.OPAQUE: PayloadDecoder(decode_hex, _is_str),
    ColumnType.BOOLEAN_ARRAY: PayloadDecoder(decode_boolean_array, _array_of(np.bool_)),
    ColumnType.INT64_ARRAY: PayloadDecoder(
        _numeric_array("<i8", INT64_WIDTH, "int64 array"), _array_of(np.int64)),
    ColumnType.FLOAT32_ARRAY: PayloadDecoder(
        _numeric_array("<f4", FLOAT32_WIDTH, "float array"), _array_of(np.float32)),
    ColumnType.FLOAT64_ARRAY: PayloadDecoder(
        _numeric_array("<f8", FLOAT64_WIDTH, "double array"), _array_of(np.float64)),
    ColumnType.STRING_ARRAY: PayloadDecoder(decode_string_array, _is_str_list),
}

_missing = set(ColumnType) - set(DECODERS)
if _missing:
    raise RuntimeError(f"No payload decoder for {sorted(t.value for t in _missing)}")


def decode_record(column_type: ColumnType, record: RawRecord) -> Any:
    """
    Decode a data record's payload for a column of ``column_type``.

    Raises:
        ParseError: payload size does not fit the type. Carries the record
            offset and entry id.
    """
    try:
        return DECODERS[column_type].decode(record.payload)
    except ValueError as e:
        raise ParseError(str(e), offset=record.offset, entry_id=record.entry_id) from e
