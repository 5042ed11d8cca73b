"""Unit tests for escaping, sanitizing, decimal and date helpers"""

import datetime
from decimal import Decimal

import pytest

from edifact_invoic.config import EDIFACTConfig
from edifact_invoic.errors import EDIFACTGenerationError
from edifact_invoic.utils import (
    chunk_text,
    escape_value,
    format_decimal,
    parse_date,
    sanitize_record,
    truncate,
)


class TestEscapeValue:
    """Test release-character escaping of data values"""

    def test_reserved_characters_are_released(self):
        """Test + ' and ? escape to ?+ ?' and ??"""
        config = EDIFACTConfig()
        assert escape_value("A+B", config) == "A?+B"
        assert escape_value("O'Neil", config) == "O?'Neil"
        assert escape_value("Why?", config) == "Why??"

    def test_component_and_repetition_separators_are_released(self):
        config = EDIFACTConfig()
        assert escape_value("a:b*c", config) == "a?:b?*c"

    def test_control_characters_are_dropped(self):
        """Test a residual control character (0x01) is removed"""
        assert escape_value("AB\x01C\x7f", EDIFACTConfig()) == "ABC"

    def test_combined_value(self):
        assert escape_value("1+1?'", EDIFACTConfig()) == "1?+1???'"

    def test_none_and_numbers(self):
        config = EDIFACTConfig()
        assert escape_value(None, config) == ""
        assert escape_value(42, config) == "42"

    def test_plain_text_unchanged(self):
        assert escape_value("Buyer Corporation", EDIFACTConfig()) == "Buyer Corporation"

    def test_custom_delimiters(self):
        """Test escaping follows the configured delimiters"""
        config = EDIFACTConfig(data_element_separator="|", release_character="\\")
        assert escape_value("a|b+c\\", config) == "a\\|b+c\\\\"


class TestFormatDecimal:
    """Test decimal formatting with configured precision"""

    def test_trailing_zero_stripped(self):
        assert format_decimal(Decimal("25.50"), 2) == "25.5"

    def test_bare_decimal_point_stripped(self):
        assert format_decimal(Decimal("10.00"), 2) == "10"

    def test_float_and_string_inputs(self):
        assert format_decimal(25.5, 2) == "25.5"
        assert format_decimal("15.75", 2) == "15.75"
        assert format_decimal(10, 2) == "10"

    def test_excess_precision_rejected(self):
        """Test 25.555 with precision 2 is a precision-exceeded error"""
        with pytest.raises(EDIFACTGenerationError) as exc_info:
            format_decimal(Decimal("25.555"), 2)
        assert exc_info.value.code == "GEN_002"
        assert exc_info.value.details["precision"] == 2

    def test_float_noise_within_tolerance(self):
        assert format_decimal(0.1 + 0.2, 2) == "0.3"

    def test_zero_precision_keeps_integer_digits(self):
        assert format_decimal(10, 0) == "10"
        assert format_decimal("100", 0) == "100"

    def test_zero_value(self):
        assert format_decimal("0.00", 2) == "0"

    def test_decimal_notation(self):
        assert format_decimal("7.25", 2, ",") == "7,25"

    def test_invalid_numeric_value(self):
        with pytest.raises(EDIFACTGenerationError) as exc_info:
            format_decimal("abc", 2)
        assert exc_info.value.code == "GEN_003"

    def test_non_finite_value_rejected(self):
        with pytest.raises(EDIFACTGenerationError) as exc_info:
            format_decimal("NaN", 2)
        assert exc_info.value.code == "GEN_003"


class TestSanitizeRecord:
    """Test control-character stripping over nested records"""

    def test_nested_strings_cleaned(self):
        record = {
            "invoice_number": "INV\x001",
            "parties": {"buyer": {"id": "B\n1"}},
            "items": [{"id": "I\t1", "quantity": 2}],
            "tags": ["a\x1fb"],
        }
        cleaned = sanitize_record(record)
        assert cleaned["invoice_number"] == "INV1"
        assert cleaned["parties"]["buyer"]["id"] == "B1"
        assert cleaned["items"][0] == {"id": "I1", "quantity": 2}
        assert cleaned["tags"] == ["ab"]

    def test_keys_untouched_and_input_not_mutated(self):
        record = {"no\x01te": "x\x02y"}
        cleaned = sanitize_record(record)
        assert cleaned == {"no\x01te": "xy"}
        assert record == {"no\x01te": "x\x02y"}

    def test_non_string_scalars_pass_through(self):
        assert sanitize_record(Decimal("1.5")) == Decimal("1.5")
        assert sanitize_record(None) is None


class TestParseDate:
    """Test exact date parsing for the supported format codes"""

    def test_format_102(self):
        assert parse_date("20250101", "102") == datetime.datetime(2025, 1, 1)

    def test_format_203(self):
        assert parse_date("202501011230", "203") == datetime.datetime(2025, 1, 1, 12, 30)

    def test_format_101(self):
        assert parse_date("250101", "101") == datetime.datetime(2025, 1, 1)

    def test_impossible_calendar_date(self):
        with pytest.raises(ValueError):
            parse_date("20250230", "102")

    def test_alternate_format_rejected(self):
        with pytest.raises(ValueError):
            parse_date("2025-01-01", "102")

    def test_non_padded_value_does_not_round_trip(self):
        with pytest.raises(ValueError):
            parse_date("2025111", "102")

    def test_non_string_rejected(self):
        with pytest.raises(ValueError):
            parse_date(20250101, "102")

    def test_unknown_format_code(self):
        with pytest.raises(KeyError):
            parse_date("20250101", "999")


class TestTextHelpers:

    def test_chunk_text_hard_cut(self):
        assert chunk_text("a" * 150, 70) == ["a" * 70, "a" * 70, "a" * 10]

    def test_chunk_text_empty(self):
        assert chunk_text("", 70) == []

    def test_truncate(self):
        assert truncate("x" * 80) == "x" * 50
        assert truncate(123) == "123"
