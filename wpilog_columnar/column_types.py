"""
Type resolver: wire type token -> logical column type.

The mapping is pure and never fails. Tokens it does not recognise become
STRING columns whose payloads are decoded leniently, so custom or future
types are absorbed instead of aborting the parse.

    "boolean"   -> BOOLEAN          "boolean[]" -> BOOLEAN_ARRAY
    "int64"     -> INT64            "int64[]"   -> INT64_ARRAY
    "float"     -> FLOAT32          "float[]"   -> FLOAT32_ARRAY
    "double"    -> FLOAT64          "double[]"  -> FLOAT64_ARRAY
    "string"    -> STRING           "string[]"  -> STRING_ARRAY
    "raw"       -> RAW
    "struct:*"  -> OPAQUE           "msgpack"   -> OPAQUE
    anything else -> STRING
"""

from enum import Enum
from typing import Dict, Optional

import numpy as np
import pyarrow as pa

from .constants import MSGPACK_TYPE, STRUCT_TYPE_PREFIX


class ColumnType(Enum):
    """Logical type of an output column."""

    BOOLEAN = "boolean"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    RAW = "raw"
    BOOLEAN_ARRAY = "boolean[]"
    INT64_ARRAY = "int64[]"
    FLOAT32_ARRAY = "float32[]"
    FLOAT64_ARRAY = "float64[]"
    STRING_ARRAY = "string[]"
    OPAQUE = "opaque"

    @property
    def is_array(self) -> bool:
        return self in _ARRAY_ELEMENT_TYPES

    @property
    def element_type(self) -> Optional["ColumnType"]:
        """Scalar type of each element for array types, else None."""
        return _ARRAY_ELEMENT_TYPES.get(self)

    @property
    def numpy_dtype(self) -> np.dtype:
        """
        Builder storage dtype for a column of this type.

        Numeric scalars get a native dtype; everything else (text, arrays,
        hex-encoded bytes) is stored as Python objects.
        """
        return _STORAGE_DTYPES.get(self, np.dtype(object))

    @property
    def arrow_type(self) -> pa.DataType:
        """Arrow type of the finished column: scalars, UTF-8 text or list<element>."""
        element = _ARRAY_ELEMENT_TYPES.get(self)
        if element is not None:
            return pa.list_(element.arrow_type)
        return _ARROW_SCALAR_TYPES.get(self, pa.string())

    @property
    def is_numeric(self) -> bool:
        return self in (ColumnType.INT64, ColumnType.FLOAT32, ColumnType.FLOAT64)


_ARRAY_ELEMENT_TYPES: Dict[ColumnType, ColumnType] = {
    ColumnType.BOOLEAN_ARRAY: ColumnType.BOOLEAN,
    ColumnType.INT64_ARRAY: ColumnType.INT64,
    ColumnType.FLOAT32_ARRAY: ColumnType.FLOAT32,
    ColumnType.FLOAT64_ARRAY: ColumnType.FLOAT64,
    ColumnType.STRING_ARRAY: ColumnType.STRING,
}

_STORAGE_DTYPES: Dict[ColumnType, np.dtype] = {
    ColumnType.BOOLEAN: np.dtype(np.bool_),
    ColumnType.INT64: np.dtype(np.int64),
    ColumnType.FLOAT32: np.dtype(np.float32),
    ColumnType.FLOAT64: np.dtype(np.float64),
}

_ARROW_SCALAR_TYPES: Dict[ColumnType, pa.DataType] = {
    ColumnType.BOOLEAN: pa.bool_(),
    ColumnType.INT64: pa.int64(),
    ColumnType.FLOAT32: pa.float32(),
    ColumnType.FLOAT64: pa.float64(),
}

_SCALAR_TOKENS: Dict[str, ColumnType] = {
    "boolean": ColumnType.BOOLEAN,
    "int64": ColumnType.INT64,
    "float": ColumnType.FLOAT32,
    "double": ColumnType.FLOAT64,
    "string": ColumnType.STRING,
    "raw": ColumnType.RAW,
}

_ARRAY_TOKENS: Dict[str, ColumnType] = {
    "boolean[]": ColumnType.BOOLEAN_ARRAY,
    "int64[]": ColumnType.INT64_ARRAY,
    "float[]": ColumnType.FLOAT32_ARRAY,
    "double[]": ColumnType.FLOAT64_ARRAY,
    "string[]": ColumnType.STRING_ARRAY,
}


def _lookup(token: str) -> Optional[ColumnType]:
    if token in _SCALAR_TOKENS:
        return _SCALAR_TOKENS[token]
    if token in _ARRAY_TOKENS:
        return _ARRAY_TOKENS[token]
    if token.startswith(STRUCT_TYPE_PREFIX) or token == MSGPACK_TYPE:
        return ColumnType.OPAQUE
    return None


def is_known_type(token: str) -> bool:
    """True if ``token`` maps to a type without the STRING fallback."""
    return _lookup(token) is not None


def resolve_type(token: str) -> ColumnType:
    """
    Map a wire type token to its logical column type (case-sensitive).

    Examples:
        >>> resolve_type("double")
        <ColumnType.FLOAT64: 'float64'>
        >>> resolve_type("struct:Pose2d[]")
        <ColumnType.OPAQUE: 'opaque'>
        >>> resolve_type("widget")
        <ColumnType.STRING: 'string'>
    """
    resolved = _lookup(token)
    return resolved if resolved is not None else ColumnType.STRING
