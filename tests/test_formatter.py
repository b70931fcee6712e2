"""Tests for dmesg-style line formatting."""

import pytest

from klogcat.formatter import format_prefix, format_record
from klogcat.models import KernelRecord
from klogcat.parser import parse_frame


class TestFormatRecord:
    def test_record_with_subsystem(self):
        record = KernelRecord(5, 1_000_000, "boot ok", subsystem="kernel")
        assert format_record(record) == b"<5>[    1.000000] kernel: boot ok\n"

    def test_record_without_subsystem(self):
        record = KernelRecord(3, 2_500_000, "oops")
        assert format_record(record) == b"<3>[    2.500000] oops\n"

    @pytest.mark.parametrize("timestamp_us,expected", [
        (0, "[    0.000000]"),
        (42, "[    0.000042]"),
        (999_999, "[    0.999999]"),
        (1_000_000, "[    1.000000]"),
        (12_345_678_901, "[12345.678901]"),
        (123_456_000_001, "[123456.000001]"),  # wider than 5 digits is not truncated
    ])
    def test_timestamp_columns(self, timestamp_us, expected):
        record = KernelRecord(6, timestamp_us, "x")
        assert f"<6>{expected} " == format_prefix(record)
        assert record.seconds == timestamp_us // 1_000_000
        assert record.microseconds == timestamp_us % 1_000_000

    def test_subsystem_reproduced_after_bracket(self):
        line = format_record(parse_frame(b"6,1,5,-;foo: bar baz"))
        assert line == b"<6>[    0.000005] foo: bar baz\n"

    def test_text_without_tag_unchanged(self):
        line = format_record(parse_frame(b"6,1,5,-;no tag here"))
        assert line.endswith(b"] no tag here\n")

    def test_length_is_byte_length(self):
        record = parse_frame("6,1,5,-;café".encode("utf-8"))
        line = format_record(record)
        assert line == "<6>[    0.000005] café\n".encode("utf-8")
        assert len(line) == len("<6>[    0.000005] cafe\n") + 1

    def test_raw_bytes_round_trip(self):
        line = format_record(parse_frame(b"6,1,5,-;bad \xff byte"))
        assert line == b"<6>[    0.000005] bad \xff byte\n"
