"""Tests for reference code formatting helpers."""

from datetime import datetime

import pytest

from galaltix.core.modules.sequence.formatting import (
    code_stem,
    date_stamp,
    fallback_code,
    format_reference_code,
    is_reference_code,
    parse_sequence,
    stream_id,
    to_base36,
)


class TestFormatReferenceCode:
    """Tests for format_reference_code function."""

    def test_pads_sequence_to_four_digits(self):
        assert format_reference_code("INV", "20260203", 1) == "INV-20260203-0001"
        assert format_reference_code("RCP", "20260203", 42) == "RCP-20260203-0042"

    def test_wide_sequence_grows_instead_of_overflowing(self):
        assert format_reference_code("INV", "20260203", 9999) == "INV-20260203-9999"
        assert format_reference_code("INV", "20260203", 12345) == "INV-20260203-12345"

    def test_non_positive_sequence_rejected(self):
        with pytest.raises(ValueError, match="positive"):
            format_reference_code("INV", "20260203", 0)

    def test_stem_and_stream_id(self):
        assert code_stem("INV", "20260203") == "INV-20260203-"
        assert stream_id("RCP", "20260203") == "RCP-20260203"


class TestParseSequence:
    """Tests for parse_sequence function."""

    def test_extracts_numeric_suffix(self):
        assert parse_sequence("INV-20260203-0001") == 1
        assert parse_sequence("RCP-20260203-0420") == 420
        assert parse_sequence("INV-20260203-12345") == 12345

    def test_alphanumeric_suffix_is_not_a_sequence(self):
        assert parse_sequence("INV-20260203-MH3K9Q2ZA7F1") is None

    def test_code_without_separator(self):
        assert parse_sequence("0001") is None


class TestDateStamp:
    """Tests for date_stamp function."""

    def test_formats_yyyymmdd(self):
        assert date_stamp(datetime(2026, 2, 3, 23, 59)) == "20260203"
        assert date_stamp(datetime(2026, 12, 31, 0, 0)) == "20261231"

    def test_defaults_to_today(self):
        stamp = date_stamp()
        assert len(stamp) == 8
        assert stamp.isdigit()


class TestFallbackCode:
    """Tests for timestamp fallback codes."""

    def test_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "Z"
        assert to_base36(36) == "10"
        assert to_base36(1295) == "ZZ"

    def test_keeps_prefix_and_counter_key(self):
        code = fallback_code("INV", "20260203", datetime(2026, 2, 3, 10, 30))
        assert code.startswith("INV-20260203-")
        assert is_reference_code(code)
        assert parse_sequence(code) is None

    def test_suffix_is_randomised(self):
        moment = datetime(2026, 2, 3, 10, 30)
        codes = {fallback_code("INV", "20260203", moment) for _ in range(20)}
        assert len(codes) > 1


class TestIsReferenceCode:
    """Tests for the reference code format check."""

    def test_valid_codes(self):
        assert is_reference_code("INV-20260203-0001")
        assert is_reference_code("RCP-20260203-12345")

    def test_invalid_codes(self):
        assert not is_reference_code("inv-20260203-0001")
        assert not is_reference_code("INV-20260203-001")
        assert not is_reference_code("INV-0001")
        assert not is_reference_code("")
