"""Priority-ordered value-type recognizers.

Each recognizer answers ``can_recognize(value, format_string)`` by checking its
format-string rule first and its value-pattern rule second, and exposes a type
token that stands in for every cell of that type in compressed output.

``DEFAULT_RECOGNIZERS`` fixes the query order; the first match wins.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from ..core.constants import BOOLEAN_LITERALS, CURRENCY_SYMBOLS
from ..utils.text import format_value

_NUMERIC_TYPES = (int, float, Decimal)


def _as_text(value: Any) -> str | None:
    """String used by value-pattern rules; None when blank."""
    if value is None:
        return None
    text = value if isinstance(value, str) else format_value(value)
    return text if text.strip() else None


class TypeRecognizer(ABC):
    """Classifies a cell value, optionally guided by its number format."""

    type_name: str = ""
    type_token: str = ""

    @abstractmethod
    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        """Whether the value or format string belongs to this type."""

    def get_type_token(self) -> str:
        return self.type_token

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


@dataclass(frozen=True)
class TypeInfo:
    """Recognizer match for a cell."""

    recognizer: TypeRecognizer
    token: str
    format_string: str | None = None

    @property
    def type_name(self) -> str:
        return self.recognizer.type_name

    def is_same_type(self, other: "TypeInfo") -> bool:
        """Formats must match when both carry one; otherwise recognizer names must."""
        if self.format_string and other.format_string:
            return self.format_string == other.format_string
        return self.type_name == other.type_name


class DateTypeRecognizer(TypeRecognizer):
    type_name = "Date"
    type_token = "yyyy-mm-dd"

    _patterns = (
        re.compile(r"^\d{4}-\d{2}-\d{2}$"),  # yyyy-MM-dd
        re.compile(r"^\d{2}/\d{2}/\d{4}$"),  # MM/dd/yyyy
        re.compile(r"^\d{2}-\d{2}-\d{4}$"),  # dd-MM-yyyy
        re.compile(r"^\d{1,2}/\d{1,2}/\d{2}$"),  # M/d/yy
    )

    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        if format_string and format_string.strip():
            lowered = format_string.lower()
            # "MM" is months; lower-case "mm" is minutes
            has_date_part = "yyyy" in lowered or "MM" in format_string or "dd" in lowered
            has_time_part = "hh" in lowered or "ss" in lowered
            if has_date_part and not has_time_part:
                return True

        if isinstance(value, datetime | date):
            return True

        text = _as_text(value)
        if text is None:
            return False
        return any(pattern.match(text) for pattern in self._patterns)


class PercentageTypeRecognizer(TypeRecognizer):
    type_name = "Percentage"
    type_token = "0.00%"

    _pattern = re.compile(r"^-?\d+(\.\d+)?%$")

    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        if format_string and "%" in format_string:
            return True

        text = _as_text(value)
        return text is not None and bool(self._pattern.match(text))


class CurrencyTypeRecognizer(TypeRecognizer):
    type_name = "Currency"
    type_token = "Currency"

    _pattern = re.compile(r"^([$€£¥₹₽¢]\s*)?-?\d+(?:(?:,\d{3})*(?:\.\d+)?|(?:\.\d+))$")

    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        if format_string and format_string.strip():
            if any(symbol in format_string for symbol in CURRENCY_SYMBOLS):
                return True
            if "currency" in format_string.lower():
                return True

        text = _as_text(value)
        if text is None:
            return False

        # Plain numbers are never currency without a symbol
        if not any(symbol in text for symbol in CURRENCY_SYMBOLS):
            return False

        if self._pattern.match(text):
            return True

        cleaned = text.lstrip("".join(CURRENCY_SYMBOLS)).strip().replace(",", "")
        try:
            return Decimal(cleaned).is_finite()
        except InvalidOperation:
            return False


class ScientificTypeRecognizer(TypeRecognizer):
    type_name = "Scientific"
    type_token = "0.00E+00"

    _pattern = re.compile(r"^-?\d+(\.\d+)?[eE][+-]?\d+$")

    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        if format_string:
            upper = format_string.upper()
            if "E+" in upper or "E-" in upper:
                return True

        text = _as_text(value)
        return text is not None and bool(self._pattern.match(text))


class TimeTypeRecognizer(TypeRecognizer):
    type_name = "Time"
    type_token = "hh:mm:ss"

    _pattern = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?(\s*(AM|PM))?$", re.IGNORECASE)

    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        if format_string:
            lowered = format_string.lower()
            if "hh" in lowered or "mm" in lowered or "ss" in lowered:
                return True

        if isinstance(value, time | timedelta):
            return True

        text = _as_text(value)
        return text is not None and bool(self._pattern.match(text))


class FractionTypeRecognizer(TypeRecognizer):
    type_name = "Fraction"
    type_token = "# ??/??"

    _pattern = re.compile(r"^-?\d+\s*/\s*\d+$")

    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        if format_string and ("??/??" in format_string or "# ?/?" in format_string):
            return True

        text = _as_text(value)
        return text is not None and bool(self._pattern.match(text))


class AccountingTypeRecognizer(TypeRecognizer):
    type_name = "Accounting"
    type_token = "_($* #,##0.00_)"

    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        if not format_string:
            return False
        lowered = format_string.lower()
        return "_($" in lowered or "accounting" in lowered


class BooleanTypeRecognizer(TypeRecognizer):
    type_name = "Boolean"
    type_token = "Boolean"

    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        if isinstance(value, bool):
            return True

        text = _as_text(value)
        return text is not None and text.lower() in BOOLEAN_LITERALS


class NumberTypeRecognizer(TypeRecognizer):
    type_name = "Number"
    type_token = "#,##0.00"

    _pattern = re.compile(r"^-?\d+(?:,\d{3})*(?:\.\d+)?$")

    def can_recognize(self, value: Any, format_string: str | None) -> bool:
        if format_string and ("#,##0" in format_string or format_string.lower() == "general"):
            return True

        if isinstance(value, _NUMERIC_TYPES) and not isinstance(value, bool):
            return True

        text = _as_text(value)
        if text is None:
            return False
        if self._pattern.match(text):
            return True
        if "_" in text:
            return False
        try:
            float(text)
        except ValueError:
            return False
        return True


# Query order is part of the contract: earlier recognizers win ties.
DEFAULT_RECOGNIZERS: tuple[TypeRecognizer, ...] = (
    DateTypeRecognizer(),
    PercentageTypeRecognizer(),
    CurrencyTypeRecognizer(),
    ScientificTypeRecognizer(),
    TimeTypeRecognizer(),
    FractionTypeRecognizer(),
    AccountingTypeRecognizer(),
    BooleanTypeRecognizer(),
    NumberTypeRecognizer(),
)


def determine_type(
    value: Any,
    format_string: str | None,
    recognizers: tuple[TypeRecognizer, ...] | list[TypeRecognizer] = DEFAULT_RECOGNIZERS,
    enable_type_recognition: bool = True,
) -> TypeInfo | None:
    """Find the first recognizer matching a cell.

    The format string is consulted first (and recorded on the match). When no
    recognizer accepts it, value patterns are tried with no format, provided
    type recognition is enabled.
    """
    if format_string:
        for recognizer in recognizers:
            if recognizer.can_recognize(value, format_string):
                return TypeInfo(recognizer, recognizer.get_type_token(), format_string)

    if enable_type_recognition:
        for recognizer in recognizers:
            if recognizer.can_recognize(value, None):
                return TypeInfo(recognizer, recognizer.get_type_token(), None)

    return None
