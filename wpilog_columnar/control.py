"""
Control record interpreter for entry-id-0 records.

Payload layout (strings are u32 length + UTF-8):

    start         [0][u32 entry][name][type][metadata]
    finish        [1][u32 entry]
    set_metadata  [2][u32 entry][metadata]

Running out of bytes inside a known variant is structural corruption and
raises ParseError. An unrecognised discriminator is a well-formed extension
and decodes to UnknownControlRecord, which callers ignore.
"""

import logging
from dataclasses import dataclass
from typing import Union

from .constants import CONTROL_FINISH, CONTROL_SET_METADATA, CONTROL_START
from .cursor import ByteCursor
from .errors import ParseError, UnexpectedEndError
from .models import RawRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartRecord:
    entry_id: int
    name: str
    type_token: str
    metadata: str


@dataclass(frozen=True)
class FinishRecord:
    entry_id: int


@dataclass(frozen=True)
class SetMetadataRecord:
    entry_id: int
    metadata: str


@dataclass(frozen=True)
class UnknownControlRecord:
    """Forward-compatibility placeholder for an unrecognised control tag."""
    tag: int


ControlRecord = Union[StartRecord, FinishRecord, SetMetadataRecord, UnknownControlRecord]


def decode_control(record: RawRecord) -> ControlRecord:
    """
    Decode the payload of a control record.

    Raises:
        ParseError: empty payload, or a known variant whose fields are cut
            short. The error carries the record offset.
    """
    cursor = ByteCursor(record.payload, base_offset=record.offset)
    try:
        tag = cursor.read_u8()
        if tag == CONTROL_START:
            return StartRecord(
                entry_id=cursor.read_u32(),
                name=cursor.read_string(),
                type_token=cursor.read_string(),
                metadata=cursor.read_string(),
            )
        if tag == CONTROL_FINISH:
            return FinishRecord(entry_id=cursor.read_u32())
        if tag == CONTROL_SET_METADATA:
            return SetMetadataRecord(
                entry_id=cursor.read_u32(),
                metadata=cursor.read_string(),
            )
    except UnexpectedEndError as e:
        raise ParseError(
            f"Malformed control record: {e.message}",
            offset=record.offset,
            entry_id=record.entry_id,
        ) from e

    logger.debug("Ignoring unknown control record tag %d at offset %d", tag, record.offset)
    return UnknownControlRecord(tag=tag)
