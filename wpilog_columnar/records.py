"""
Record decoder: file header validation and record framing.

Layout after the header, repeated until the end of the span:

    [control byte][entry id][payload size][timestamp][payload ...]

The control byte stores (width - 1) of the three little-endian fields that
follow it. ``iter_records`` is a generator, so a walk is lazy and every call
starts again from the first record.
"""

from typing import Iterator, Optional

from .constants import (
    ENTRY_WIDTH_BITS,
    HEADER_FIXED_SIZE,
    MAGIC,
    SIZE_WIDTH_BITS,
    SUPPORTED_MAJOR_VERSION,
    TIMESTAMP_WIDTH_BITS,
)
from .cursor import ByteCursor, ByteSpan
from .errors import InvalidFormatError, ParseError, UnexpectedEndError
from .models import LogHeader, RawRecord

_INT64_SIGN = 1 << 63
_UINT64_RANGE = 1 << 64


def _field_width(control: int, bits) -> int:
    shift, mask = bits
    return ((control >> shift) & mask) + 1


def _to_signed64(value: int) -> int:
    return value - _UINT64_RANGE if value >= _INT64_SIGN else value


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------

def read_header(span: ByteSpan) -> LogHeader:
    """
    Validate the magic and version and decode the extra header string.

    Raises:
        InvalidFormatError: missing magic, unsupported major version, or a
            header that ends before its declared extra-header length.
    """
    cursor = ByteCursor(span)
    if cursor.remaining() < HEADER_FIXED_SIZE:
        raise InvalidFormatError(
            f"File too short for WPILOG header: {cursor.remaining()} bytes",
            offset=0,
        )

    magic = bytes(cursor.read_bytes(len(MAGIC)))
    if magic != MAGIC:
        raise InvalidFormatError(f"Bad magic {magic!r}, expected {MAGIC!r}", offset=0)

    version = cursor.read_le_uint(2)
    if version >> 8 != SUPPORTED_MAJOR_VERSION:
        raise InvalidFormatError(
            f"Unsupported WPILOG version {version >> 8}.{version & 0xFF}",
            offset=len(MAGIC),
        )

    try:
        extra_header = cursor.read_string()
    except UnexpectedEndError as e:
        raise InvalidFormatError(
            "Extra header length exceeds file size", offset=e.offset
        ) from e

    return LogHeader(
        version=version,
        extra_header=extra_header,
        data_offset=cursor.position(),
    )


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def iter_records(span: ByteSpan, header: Optional[LogHeader] = None) -> Iterator[RawRecord]:
    """
    Yield every record in the span, in stream order.

    A trailing partial header, or a payload size that runs past the end of
    the span, raises ParseError. ``entry_id`` is set on the error when the
    entry id field was read before the failure.
    """
    if header is None:
        header = read_header(span)

    view = span if isinstance(span, memoryview) else memoryview(span)
    cursor = ByteCursor(view[header.data_offset:], base_offset=header.data_offset)

    while not cursor.at_end():
        record_offset = cursor.position()
        entry_id = None
        try:
            control = cursor.read_u8()
            entry_id = cursor.read_le_uint(_field_width(control, ENTRY_WIDTH_BITS))
            size = cursor.read_le_uint(_field_width(control, SIZE_WIDTH_BITS))
            timestamp = cursor.read_le_uint(_field_width(control, TIMESTAMP_WIDTH_BITS))
        except UnexpectedEndError as e:
            raise ParseError(
                f"Truncated record header: {e.message}",
                offset=record_offset,
                entry_id=entry_id,
            ) from e

        if size > cursor.remaining():
            raise ParseError(
                f"Payload size {size} exceeds remaining {cursor.remaining()} bytes",
                offset=record_offset,
                entry_id=entry_id,
            )

        yield RawRecord(
            entry_id=entry_id,
            timestamp=_to_signed64(timestamp),
            payload=cursor.read_bytes(size),
            offset=record_offset,
        )
