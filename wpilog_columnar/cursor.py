"""
Bounds-checked sequential reader over an immutable byte span.

All multi-byte integers are little-endian. A read never goes past the end of
the span: any length claim is checked against ``remaining()`` first and a
short read raises UnexpectedEndError with the absolute offset.
"""

import struct
from typing import Union

from .errors import UnexpectedEndError

ByteSpan = Union[bytes, bytearray, memoryview]

_U32 = struct.Struct("<I")


class ByteCursor:
    """
    Sequential reader over a borrowed byte span.

    ``base_offset`` is added to positions reported in errors, so a cursor
    over a record payload still points at the right place in the file.
    """

    def __init__(self, span: ByteSpan, base_offset: int = 0):
        self._view = span if isinstance(span, memoryview) else memoryview(span)
        self._pos = 0
        self.base_offset = base_offset

    def position(self) -> int:
        """Absolute offset of the next byte to be read."""
        return self.base_offset + self._pos

    def remaining(self) -> int:
        return len(self._view) - self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._view)

    def _require(self, n: int, what: str):
        if n < 0 or n > self.remaining():
            raise UnexpectedEndError(
                f"Unexpected end of data reading {what}: "
                f"need {n} bytes, {self.remaining()} remain",
                offset=self.position(),
            )

    def read_u8(self) -> int:
        self._require(1, "u8")
        value = self._view[self._pos]
        self._pos += 1
        return value

    def read_le_uint(self, width: int) -> int:
        """Read an unsigned little-endian integer of 1-8 bytes."""
        self._require(width, f"{width}-byte integer")
        value = int.from_bytes(self._view[self._pos:self._pos + width], "little")
        self._pos += width
        return value

    def read_u32(self) -> int:
        self._require(4, "u32")
        (value,) = _U32.unpack_from(self._view, self._pos)
        self._pos += 4
        return value

    def read_bytes(self, n: int) -> memoryview:
        """Zero-copy slice of the next ``n`` bytes."""
        self._require(n, f"{n}-byte field")
        chunk = self._view[self._pos:self._pos + n]
        self._pos += n
        return chunk

    def read_string(self) -> str:
        """u32 length followed by UTF-8 bytes; invalid sequences are replaced."""
        length = self.read_u32()
        return bytes(self.read_bytes(length)).decode("utf-8", errors="replace")
