"""
Format constants and defaults for the WPILog decoder.

Design principles:
- Everything here describes the public WPILog v1.0 wire format, NOT policy.
  Policy (strict vs lenient) is chosen per call through ParseOptions.
- Bit layouts are expressed as (shift, mask) pairs so the record decoder
  reads them the same way for all three framing fields.
"""

from typing import Dict, Tuple

# ---------------------------------------------------------------------------
# File header
# ---------------------------------------------------------------------------
# "WPILOG" + u16 version + u32 extra header length + extra header bytes

MAGIC = b"WPILOG"
SUPPORTED_MAJOR_VERSION = 1         # 0x0100 = v1.0; any 1.x minor is accepted
HEADER_FIXED_SIZE = len(MAGIC) + 2 + 4

# ---------------------------------------------------------------------------
# Record framing
# ---------------------------------------------------------------------------
# The control byte stores (width - 1) for each field that follows it.

ENTRY_WIDTH_BITS: Tuple[int, int] = (0, 0x3)        # 1-4 bytes
SIZE_WIDTH_BITS: Tuple[int, int] = (2, 0x3)         # 1-4 bytes
TIMESTAMP_WIDTH_BITS: Tuple[int, int] = (4, 0x7)    # 1-8 bytes

CONTROL_ENTRY_ID = 0                # entry id reserved for control records

# ---------------------------------------------------------------------------
# Control records
# ---------------------------------------------------------------------------

CONTROL_START = 0
CONTROL_FINISH = 1
CONTROL_SET_METADATA = 2

CONTROL_NAMES: Dict[int, str] = {
    CONTROL_START: "start",
    CONTROL_FINISH: "finish",
    CONTROL_SET_METADATA: "set_metadata",
}

STRING_LENGTH_WIDTH = 4             # every embedded string is u32-length prefixed

# ---------------------------------------------------------------------------
# Wire type tokens
# ---------------------------------------------------------------------------

STRUCT_TYPE_PREFIX = "struct:"
MSGPACK_TYPE = "msgpack"
ARRAY_TYPE_SUFFIX = "[]"

# Element widths (bytes) for fixed-width payloads
BOOLEAN_WIDTH = 1
INT64_WIDTH = 8
FLOAT32_WIDTH = 4
FLOAT64_WIDTH = 8

# ---------------------------------------------------------------------------
# Output table
# ---------------------------------------------------------------------------

TIMESTAMP_COLUMN = "timestamp"
MICROSECONDS_PER_SECOND = 1_000_000

# ---------------------------------------------------------------------------
# CLI display
# ---------------------------------------------------------------------------

DEFAULT_SHOW_ROWS = 10
NAME_COLUMN_WIDTH = 40              # padding for the schema / info listings
MAX_CELL_WIDTH = 24                 # truncate long cell text in `show`
