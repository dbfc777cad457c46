"""
WPILog Columnar Unit Tests - Schema Inference (pass 1)
"""

import logging

import pytest

from wpilog_columnar.column_types import ColumnType
from wpilog_columnar.errors import ErrorKind, ParseError, SchemaError
from wpilog_columnar.models import ParseOptions
from wpilog_columnar.schema import Schema, SchemaEntry, infer


LENIENT = ParseOptions(strict=False)


class TestSchemaRegistry:
    """Tests for the Schema container."""

    def test_positions_follow_insertion(self):
        schema = Schema()
        schema.add(SchemaEntry(5, "b", ColumnType.INT64, "int64"))
        schema.add(SchemaEntry(2, "a", ColumnType.STRING, "string"))
        assert [e.position for e in schema] == [0, 1]
        assert schema.names == ["b", "a"]
        assert 5 in schema and 3 not in schema
        assert schema.get(2).name == "a"

    def test_duplicate_entry_id(self):
        schema = Schema([SchemaEntry(1, "a", ColumnType.INT64, "int64")])
        with pytest.raises(SchemaError):
            schema.add(SchemaEntry(1, "a", ColumnType.INT64, "int64"))


class TestInfer:
    """Tests for infer()."""

    def test_sample_log(self, sample_log):
        inference = infer(sample_log.build())
        assert inference.schema.names == ["/drive/speed", "/robot/enabled", "/robot/mode"]
        assert [e.column_type for e in inference.schema] == [
            ColumnType.FLOAT64, ColumnType.BOOLEAN, ColumnType.STRING,
        ]
        assert inference.timestamps.tolist() == [100, 200, 300]
        assert inference.row_index == {100: 0, 200: 1, 300: 2}
        assert inference.header.extra_header == "test"

    def test_timestamps_sorted_and_unique(self, log):
        log.start(1, "a", "int64")
        for ts in (500, 100, 300, 100, 500):
            log.data(1, ts, log.int64(ts))
        inference = infer(log.build())
        assert inference.timestamps.tolist() == [100, 300, 500]
        assert inference.row_count == 3

    def test_control_timestamps_are_not_rows(self, log):
        log.start(1, "a", "int64", timestamp=50)
        log.data(1, 100, log.int64(1))
        log.finish(1, timestamp=999)
        assert infer(log.build()).timestamps.tolist() == [100]

    def test_inactive_data_is_not_a_row(self, log):
        """Data before Start, after Finish, or for unknown ids adds no row."""
        log.data(1, 10, log.int64(0))
        log.start(1, "a", "int64")
        log.data(1, 20, log.int64(1))
        log.finish(1)
        log.data(1, 30, log.int64(2))
        log.data(9, 40, log.int64(3))
        assert infer(log.build()).timestamps.tolist() == [20]

    def test_active_flag_at_end_of_stream(self, log):
        log.start(1, "a", "int64").start(2, "b", "int64").finish(1)
        schema = infer(log.build()).schema
        assert schema.get(1).active is False
        assert schema.get(2).active is True

    def test_zero_data_records(self, log):
        log.start(1, "a", "double").start(2, "b", "string")
        inference = infer(log.build())
        assert len(inference.schema) == 2
        assert inference.row_count == 0

    def test_no_entries(self, log):
        with pytest.raises(SchemaError) as exc_info:
            infer(log.data(1, 1, b"x").build())
        assert exc_info.value.kind == ErrorKind.SCHEMA

    def test_start_for_reserved_id(self, log):
        log.start(0, "control", "int64")
        with pytest.raises(SchemaError, match="reserved"):
            infer(log.build())

    def test_metadata_from_start_and_set_metadata(self, log):
        log.start(1, "a", "double", metadata="v1")
        log.start(2, "b", "double")
        log.set_metadata(2, "v2")
        schema = infer(log.build()).schema
        assert schema.get(1).metadata == "v1"
        assert schema.get(2).metadata == "v2"

    def test_unknown_type_logs_warning(self, log, caplog):
        log.start(1, "custom", "widget")
        with caplog.at_level(logging.WARNING, logger="wpilog_columnar.schema"):
            schema = infer(log.build()).schema
        assert schema.get(1).column_type == ColumnType.STRING
        assert schema.get(1).type_token == "widget"
        assert "widget" in caplog.text

    def test_finish_and_metadata_for_unknown_id_ignored(self, log):
        log.finish(7).set_metadata(8, "x").start(1, "a", "int64")
        assert infer(log.build()).schema.names == ["a"]

    def test_unknown_control_tag_ignored(self, log):
        log.control(b"\x09\x00").start(1, "a", "int64")
        assert len(infer(log.build()).schema) == 1


class TestRedefinition:
    """Tests for Start records that reuse an entry id."""

    def test_matching_restart_keeps_position(self, log):
        log.start(1, "a", "double").start(2, "b", "double")
        log.finish(1)
        log.start(1, "a", "double")
        log.data(1, 10, log.float64(1.0))
        inference = infer(log.build())
        assert inference.schema.names == ["a", "b"]
        assert inference.schema.get(1).position == 0
        assert inference.timestamps.tolist() == [10]

    def test_matching_restart_while_active(self, log):
        log.start(1, "a", "double").start(1, "a", "double", metadata="new")
        schema = infer(log.build()).schema
        assert len(schema) == 1
        assert schema.get(1).metadata == "new"

    def test_conflicting_name(self, log):
        log.start(1, "a", "double").start(1, "other", "double")
        with pytest.raises(SchemaError, match="redefined") as exc_info:
            infer(log.build())
        assert exc_info.value.entry_id == 1

    def test_conflicting_type_after_finish(self, log):
        log.start(1, "a", "double").finish(1).start(1, "a", "int64")
        with pytest.raises(SchemaError):
            infer(log.build())


class TestPass1Errors:
    """Tests for framing and control failures during pass 1."""

    def test_malformed_control_is_fatal_when_lenient(self, log):
        log.start(1, "a", "double")
        log.control(b"\x00\x02\x00")
        with pytest.raises(ParseError):
            infer(log.build(), LENIENT)

    def test_truncated_control_record_is_fatal_when_lenient(self, log):
        log.start(1, "a", "double")
        log.record(0, 0, b"\x01", size=5)
        with pytest.raises(ParseError):
            infer(log.build(), LENIENT)

    def test_truncated_data_record_strict(self, log):
        log.start(1, "a", "double").data(1, 10, log.float64(1.0))
        log.record(1, 20, b"\x00\x00", size=8)
        with pytest.raises(ParseError) as exc_info:
            infer(log.build())
        assert exc_info.value.entry_id == 1

    def test_truncated_data_record_lenient(self, log):
        log.start(1, "a", "double").data(1, 10, log.float64(1.0))
        log.record(1, 20, b"\x00\x00", size=8)
        inference = infer(log.build(), LENIENT)
        assert inference.timestamps.tolist() == [10]
