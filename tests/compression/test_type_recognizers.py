"""Tests for the value-type recognizers."""

from datetime import date, datetime, time

import pytest

from gridpress.compression.type_recognizers import (
    DEFAULT_RECOGNIZERS,
    AccountingTypeRecognizer,
    BooleanTypeRecognizer,
    CurrencyTypeRecognizer,
    DateTypeRecognizer,
    FractionTypeRecognizer,
    NumberTypeRecognizer,
    PercentageTypeRecognizer,
    ScientificTypeRecognizer,
    TimeTypeRecognizer,
    determine_type,
)


def test_default_order():
    """Recognizers are queried in a fixed order."""
    names = [recognizer.type_name for recognizer in DEFAULT_RECOGNIZERS]
    assert names == [
        "Date",
        "Percentage",
        "Currency",
        "Scientific",
        "Time",
        "Fraction",
        "Accounting",
        "Boolean",
        "Number",
    ]


class TestFormatRules:
    """Format strings decide the type before the value is looked at."""

    @pytest.mark.parametrize(
        "fmt, expected",
        [
            ("yyyy-mm-dd", "Date"),
            ("MM/DD/YYYY", "Date"),
            ("0.00%", "Percentage"),
            ("$#,##0.00", "Currency"),
            ("€#,##0", "Currency"),
            ("0.00E+00", "Scientific"),
            ("hh:mm:ss", "Time"),
            ("yyyy-mm-dd hh:mm", "Time"),
            ("# ??/??", "Fraction"),
            ("Accounting", "Accounting"),
            ("#,##0", "Number"),
            ("General", "Number"),
        ],
    )
    def test_format_decides(self, fmt, expected):
        info = determine_type(7, fmt)
        assert info is not None
        assert info.type_name == expected
        assert info.format_string == fmt

    def test_value_rule_matches_during_format_pass(self):
        info = determine_type("42", "@")
        assert info.type_name == "Number"
        assert info.format_string == "@"

    def test_no_format_without_recognition(self):
        assert determine_type("42", None, enable_type_recognition=False) is None
        assert determine_type("hello", "@", enable_type_recognition=False) is None


class TestValueRules:
    """Value patterns used when no format string applies."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-01-31", "Date"),
            ("01/31/2024", "Date"),
            ("1/5/24", "Date"),
            (date(2024, 1, 31), "Date"),
            (datetime(2024, 1, 31, 12, 0), "Date"),
            ("75%", "Percentage"),
            ("-12.5%", "Percentage"),
            ("$1,234.56", "Currency"),
            ("€ 99", "Currency"),
            ("1.5e10", "Scientific"),
            ("9:30", "Time"),
            ("11:45:00 PM", "Time"),
            (time(8, 0), "Time"),
            ("3/4", "Fraction"),
            ("yes", "Boolean"),
            ("FALSE", "Boolean"),
            (True, "Boolean"),
            (1234, "Number"),
            (12.75, "Number"),
            ("1,234,567.89", "Number"),
            ("-0.5", "Number"),
        ],
    )
    def test_value_recognized(self, value, expected):
        info = determine_type(value, None)
        assert info is not None
        assert info.type_name == expected

    @pytest.mark.parametrize("value", ["hello", "1_000", "", "   ", None, "N/A"])
    def test_unrecognized(self, value):
        assert determine_type(value, None) is None

    def test_plain_number_is_not_currency(self):
        assert not CurrencyTypeRecognizer().can_recognize("1234.50", None)

    def test_accounting_needs_format(self):
        assert not AccountingTypeRecognizer().can_recognize("$5", None)

    def test_number_rejects_underscores(self):
        assert not NumberTypeRecognizer().can_recognize("1_000", None)

    def test_date_format_with_time_part_is_not_date(self):
        assert not DateTypeRecognizer().can_recognize(None, "dd/mm/yyyy hh:mm")

    def test_individual_recognizers(self):
        assert PercentageTypeRecognizer().can_recognize("80.5%", None)
        assert ScientificTypeRecognizer().can_recognize("-2E-5", None)
        assert TimeTypeRecognizer().can_recognize("7:05 am", None)
        assert FractionTypeRecognizer().can_recognize("12 / 16", None)
        assert BooleanTypeRecognizer().can_recognize("No", None)


class TestSameType:
    """Format strings dominate type comparison when both cells have one."""

    def test_formats_compared_when_both_present(self):
        a = determine_type(1, "$#,##0.00")
        b = determine_type(2, "$#,##0")
        assert a.type_name == b.type_name == "Currency"
        assert not a.is_same_type(b)

    def test_names_compared_otherwise(self):
        a = determine_type(5, "#,##0")
        b = determine_type(6, None)
        assert a.is_same_type(b)

    def test_different_names(self):
        assert not determine_type("75%", None).is_same_type(determine_type(75, None))

    def test_custom_recognizer_list(self):
        info = determine_type("75%", None, recognizers=[NumberTypeRecognizer()])
        assert info is None
