"""Cell and address models."""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.exceptions import ValidationError
from ..utils.text import format_value

_A1_PATTERN = re.compile(r"^([A-Z]+)(\d+)$")


def column_to_letter(col: int) -> str:
    """Convert a 0-based column index to letters (0 -> 'A', 26 -> 'AA')."""
    result = ""
    while col >= 0:
        result = chr(col % 26 + ord("A")) + result
        col = col // 26 - 1
    return result


def letter_to_column(letters: str) -> int:
    """Convert column letters to a 0-based column index ('A' -> 0, 'AA' -> 26)."""
    col = 0
    for char in letters:
        col = col * 26 + (ord(char) - ord("A") + 1)
    return col - 1


@dataclass(frozen=True, order=True)
class CellAddress:
    """Zero-based (row, column) position; orders row-major."""

    row: int
    column: int

    def __post_init__(self):
        if self.row < 0 or self.column < 0:
            raise ValidationError(
                f"Cell address must be non-negative, got row={self.row}, column={self.column}"
            )

    @property
    def a1(self) -> str:
        """Excel-style reference (e.g., 'B3')."""
        return f"{column_to_letter(self.column)}{self.row + 1}"

    @classmethod
    def from_a1(cls, reference: str) -> "CellAddress":
        """Parse an A1-style reference, ignoring case and surrounding whitespace."""
        match = _A1_PATTERN.match(reference.strip().upper())
        if not match:
            raise ValidationError(f"Invalid cell reference: {reference!r}")

        letters, digits = match.groups()
        row = int(digits)
        if row < 1:
            raise ValidationError(f"Invalid cell reference: {reference!r}")
        return cls(row - 1, letter_to_column(letters))

    def __str__(self) -> str:
        return self.a1


class CellValueType(Enum):
    """Recognized data type of a cell."""

    EMPTY = "empty"
    STRING = "string"
    NUMBER = "number"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    FORMULA = "formula"
    ERROR = "error"


class CellStyle(BaseModel):
    """Style metadata captured by the loader."""

    model_config = ConfigDict(strict=True)

    is_bold: bool = Field(False, description="Text is bold")
    is_italic: bool = Field(False, description="Text is italic")
    font_color: str | None = Field(None, description="Font color (hex)")
    background_color: str | None = Field(None, description="Background color (hex)")
    has_borders: bool = Field(False, description="Cell has any border")
    is_merged: bool = Field(False, description="Cell is part of merged range")
    merged_row_span: int = Field(1, ge=1, description="Rows covered by the merge")
    merged_column_span: int = Field(1, ge=1, description="Columns covered by the merge")

    @property
    def is_distinctive(self) -> bool:
        """Whether the style sets the cell apart from plain body cells."""
        return self.is_bold or self.is_merged or self.has_borders or bool(self.background_color)

    def describe(self) -> str:
        """Compact ``[bold,merged(RxC),borders,bg:color]`` form, or '' if plain."""
        parts = []
        if self.is_bold:
            parts.append("bold")
        if self.is_merged:
            parts.append(f"merged({self.merged_row_span}x{self.merged_column_span})")
        if self.has_borders:
            parts.append("borders")
        if self.background_color:
            parts.append(f"bg:{self.background_color}")
        return f"[{','.join(parts)}]" if parts else ""


CellValue = str | int | float | bool | datetime | date | time | timedelta | Decimal | None


class CellData(BaseModel):
    """Represents a single cell with its value and formatting information."""

    model_config = ConfigDict(strict=True)

    row: int = Field(..., ge=0, description="Row index (0-based)")
    column: int = Field(..., ge=0, description="Column index (0-based)")
    value: CellValue = Field(None, description="Raw cell value")
    formatted_value: str | None = Field(None, description="Display string from the loader")
    formula: str | None = Field(None, description="Formula text without the leading '='")
    number_format: str | None = Field(None, description="Number format string")
    data_type: CellValueType | None = Field(
        None, description="Recognized data type; inferred from the value when omitted"
    )
    style: CellStyle | None = Field(None, description="Style metadata")

    @model_validator(mode="after")
    def _infer_data_type(self) -> "CellData":
        if self.data_type is None:
            self.data_type = _infer_type(self.value, self.formula)
        return self

    @property
    def address(self) -> CellAddress:
        return CellAddress(self.row, self.column)

    @property
    def excel_address(self) -> str:
        """Get Excel-style address (e.g., 'A1')."""
        return f"{column_to_letter(self.column)}{self.row + 1}"

    @property
    def is_empty(self) -> bool:
        return self.data_type is CellValueType.EMPTY

    @property
    def has_formula(self) -> bool:
        return bool(self.formula)

    @property
    def is_bold(self) -> bool:
        return self.style is not None and self.style.is_bold

    @property
    def background_color(self) -> str | None:
        return self.style.background_color if self.style else None

    @property
    def string_value(self) -> str:
        """Canonical string form of the raw value."""
        return format_value(self.value)

    @property
    def display_value(self) -> str:
        """Loader-formatted value when available, otherwise the canonical string."""
        if self.formatted_value is not None:
            return self.formatted_value
        return self.string_value

    def moved_to(self, row: int, column: int) -> "CellData":
        """Copy of this cell at a new position."""
        return self.model_copy(update={"row": row, "column": column})


def _infer_type(value: CellValue, formula: str | None) -> CellValueType:
    if formula:
        return CellValueType.FORMULA
    if value is None or (isinstance(value, str) and not value.strip()):
        return CellValueType.EMPTY
    if isinstance(value, bool):
        return CellValueType.BOOLEAN
    if isinstance(value, int | float | Decimal):
        return CellValueType.NUMBER
    if isinstance(value, datetime | date | time | timedelta):
        return CellValueType.DATETIME
    return CellValueType.STRING
