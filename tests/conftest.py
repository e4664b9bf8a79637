"""Pytest configuration and shared fixtures."""

from typing import Any

import pytest

from gridpress.config import Config
from gridpress.models import CellData, CellStyle, WorkbookContext, WorksheetContext


def make_worksheet(
    name: str,
    rows: list[list[Any]],
    bold_rows: tuple[int, ...] = (),
    number_format: str | None = None,
    index: int = 0,
) -> WorksheetContext:
    """Build a worksheet from a 2D list; None entries are left out."""
    worksheet = WorksheetContext(name=name, index=index)
    for row_idx, row in enumerate(rows):
        for col_idx, value in enumerate(row):
            if value is None:
                continue
            worksheet.set_cell(
                CellData(
                    row=row_idx,
                    column=col_idx,
                    value=value,
                    number_format=number_format,
                    style=CellStyle(is_bold=True) if row_idx in bold_rows else None,
                )
            )
    return worksheet


@pytest.fixture
def sales_sheet() -> WorksheetContext:
    """Five-row table with a bold header."""
    return make_worksheet(
        "Sales",
        [
            ["Name", "Region", "Sales"],
            ["Alice", "North", 100],
            ["Bob", "South", 200],
            ["Carol", "East", 300],
            ["Dave", "West", 400],
        ],
        bold_rows=(0,),
    )


@pytest.fixture
def sales_workbook(sales_sheet: WorksheetContext) -> WorkbookContext:
    return WorkbookContext.from_worksheets([sales_sheet], file_path="sales.xlsx")


@pytest.fixture
def currency_sheet() -> WorksheetContext:
    """A1:A3 currency amounts sharing one format."""
    return make_worksheet("Sheet1", [[1000.50], [2500.75], [3200.00]], number_format="$#,##0.00")


@pytest.fixture
def currency_workbook(currency_sheet: WorksheetContext) -> WorkbookContext:
    return WorkbookContext.from_worksheets([currency_sheet])


@pytest.fixture
def empty_sheet() -> WorksheetContext:
    return WorksheetContext(name="Empty")


@pytest.fixture
def config() -> Config:
    """Configuration that does not touch the environment."""
    return Config(log_level="WARNING")


@pytest.fixture
def build_worksheet():
    """Factory fixture wrapping make_worksheet."""
    return make_worksheet
