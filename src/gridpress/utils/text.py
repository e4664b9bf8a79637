"""Text helpers shared by the serializers and compression steps."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from ..core.constants import CELL_FORMATTING


def format_number(value: int | float | Decimal) -> str:
    """Render a number rounded to the fixed precision without trailing zeros."""
    if isinstance(value, int):
        return str(value)

    text = f"{value:.{CELL_FORMATTING.NUMBER_PRECISION}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("", "-0"):
        return "0"
    return text


def format_value(value: Any) -> str:
    """Convert a raw cell value into its canonical string form.

    Dates render as ``YYYY-MM-DD``, times as ``HH:MM:SS``, booleans as
    ``TRUE``/``FALSE`` and numbers at a fixed precision. Strings pass through
    unchanged and ``None`` becomes the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return CELL_FORMATTING.TRUE_LITERAL if value else CELL_FORMATTING.FALSE_LITERAL
    if isinstance(value, datetime | date):
        return value.strftime(CELL_FORMATTING.DATE_FORMAT)
    if isinstance(value, time):
        return value.strftime(CELL_FORMATTING.TIME_FORMAT)
    if isinstance(value, timedelta):
        total = int(value.total_seconds())
        hours, remainder = divmod(total, 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if isinstance(value, int | float | Decimal):
        return format_number(value)
    return str(value)


def estimate_tokens(text: str) -> int:
    """Approximate the token count of ``text`` as its UTF-8 byte length.

    This is an approximation, not a sub-word tokenizer. Budgets and ratios are
    all measured with it.
    """
    return len(text.encode("utf-8"))
