"""
WPILog Columnar Test Configuration and Fixtures
================================================
Shared fixtures for all tests. ``LogBuilder`` writes byte-exact WPILog data
in memory so every test can craft the records it needs.
"""

import struct
from pathlib import Path
from typing import Iterable, Optional

import pytest


def _min_width(value: int) -> int:
    return max(1, (value.bit_length() + 7) // 8)


class LogBuilder:
    """Minimal WPILog writer used to build test inputs."""

    def __init__(self, version: int = 0x0100, extra_header: str = ""):
        extra = extra_header.encode("utf-8")
        self.buf = bytearray(b"WPILOG")
        self.buf += struct.pack("<HI", version, len(extra))
        self.buf += extra

    # -- payload helpers -----------------------------------------------------

    @staticmethod
    def string(text: str) -> bytes:
        raw = text.encode("utf-8")
        return struct.pack("<I", len(raw)) + raw

    @staticmethod
    def boolean(value: bool) -> bytes:
        return b"\x01" if value else b"\x00"

    @staticmethod
    def int64(value: int) -> bytes:
        return struct.pack("<q", value)

    @staticmethod
    def float32(value: float) -> bytes:
        return struct.pack("<f", value)

    @staticmethod
    def float64(value: float) -> bytes:
        return struct.pack("<d", value)

    @staticmethod
    def string_array(values: Iterable[str]) -> bytes:
        values = list(values)
        return struct.pack("<I", len(values)) + b"".join(LogBuilder.string(v) for v in values)

    # -- records -------------------------------------------------------------

    def record(
        self,
        entry_id: int,
        timestamp: int,
        payload: bytes,
        entry_width: Optional[int] = None,
        size_width: Optional[int] = None,
        timestamp_width: Optional[int] = None,
        size: Optional[int] = None,
    ) -> "LogBuilder":
        """Append one framed record. ``size`` overrides the declared length."""
        declared = len(payload) if size is None else size
        ts_wire = timestamp & 0xFFFFFFFFFFFFFFFF
        entry_width = entry_width or _min_width(entry_id)
        size_width = size_width or _min_width(declared)
        timestamp_width = timestamp_width or _min_width(ts_wire)
        control = ((entry_width - 1)
                   | ((size_width - 1) << 2)
                   | ((timestamp_width - 1) << 4))
        self.buf.append(control)
        self.buf += entry_id.to_bytes(entry_width, "little")
        self.buf += declared.to_bytes(size_width, "little")
        self.buf += ts_wire.to_bytes(timestamp_width, "little")
        self.buf += payload
        return self

    def control(self, payload: bytes, timestamp: int = 0) -> "LogBuilder":
        return self.record(0, timestamp, payload)

    def start(self, entry_id: int, name: str, type_token: str,
              metadata: str = "", timestamp: int = 0) -> "LogBuilder":
        payload = (b"\x00" + struct.pack("<I", entry_id)
                   + self.string(name) + self.string(type_token) + self.string(metadata))
        return self.control(payload, timestamp)

    def finish(self, entry_id: int, timestamp: int = 0) -> "LogBuilder":
        return self.control(b"\x01" + struct.pack("<I", entry_id), timestamp)

    def set_metadata(self, entry_id: int, metadata: str, timestamp: int = 0) -> "LogBuilder":
        return self.control(b"\x02" + struct.pack("<I", entry_id) + self.string(metadata), timestamp)

    def data(self, entry_id: int, timestamp: int, payload: bytes, **widths) -> "LogBuilder":
        return self.record(entry_id, timestamp, payload, **widths)

    def raw(self, data: bytes) -> "LogBuilder":
        """Append bytes verbatim (used to build truncated tails)."""
        self.buf += data
        return self

    def build(self) -> bytes:
        return bytes(self.buf)

    def write(self, path: Path) -> Path:
        path.write_bytes(self.build())
        return path


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def make_log():
    """Factory for fresh LogBuilder instances."""
    return LogBuilder


@pytest.fixture
def log() -> LogBuilder:
    """An empty v1.0 log with no extra header."""
    return LogBuilder()


@pytest.fixture
def sample_log() -> LogBuilder:
    """
    Three entries with interleaved sparse writes:

        ts   speed   enabled  mode
        100  1.5     True     -
        200  -       -        "auto"
        300  2.5     -        -
    """
    b = LogBuilder(extra_header="test")
    b.start(1, "/drive/speed", "double")
    b.start(2, "/robot/enabled", "boolean")
    b.start(3, "/robot/mode", "string")
    b.data(1, 100, b.float64(1.5))
    b.data(2, 100, b.boolean(True))
    b.data(3, 200, b"auto")
    b.data(1, 300, b.float64(2.5))
    return b


@pytest.fixture
def sample_file(tmp_path, sample_log) -> Path:
    """The sample log written to disk."""
    return sample_log.write(tmp_path / "sample.wpilog")
