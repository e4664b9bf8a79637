"""Tests for building workbooks from DataFrames."""

from datetime import datetime, timedelta

import numpy as np
import pandas as pd
import pytest

from gridpress.models import CellValueType
from gridpress.readers import DataFrameReader, to_cell_value


@pytest.fixture
def frame():
    return pd.DataFrame(
        {
            "Name": ["Alice", "Bob", None],
            "Amount": [1000.5, np.nan, 3200.0],
            "Count": [1, 2, 3],
        }
    )


def test_header_row_is_bold(frame):
    workbook = DataFrameReader().read({"Data": frame})
    sheet = workbook.worksheets[0]

    header = [sheet.get_cell(0, col) for col in range(3)]
    assert [cell.value for cell in header] == ["Name", "Amount", "Count"]
    assert all(cell.is_bold for cell in header)
    assert sheet.get_cell(1, 0).value == "Alice"
    assert not sheet.get_cell(1, 0).is_bold


def test_missing_values_are_skipped(frame):
    sheet = DataFrameReader().read({"Data": frame}).worksheets[0]

    assert sheet.get_cell(2, 1) is None
    assert sheet.get_cell(3, 0) is None
    assert len(sheet.cells) == 3 + 7


def test_numpy_scalars_become_python(frame):
    sheet = DataFrameReader().read({"Data": frame}).worksheets[0]

    count = sheet.get_cell(1, 2)
    assert type(count.value) is int
    assert count.data_type is CellValueType.NUMBER
    assert type(sheet.get_cell(1, 1).value) is float


def test_without_header(frame):
    sheet = DataFrameReader().read({"Data": frame}, include_header=False).worksheets[0]

    assert sheet.get_cell(0, 0).value == "Alice"


def test_number_formats_by_column(frame):
    workbook = DataFrameReader().read({"Data": frame}, number_formats={"Amount": "$#,##0.00"})
    sheet = workbook.worksheets[0]

    assert sheet.get_cell(1, 1).number_format == "$#,##0.00"
    assert sheet.get_cell(1, 2).number_format is None
    assert sheet.get_cell(0, 1).number_format is None


def test_sheet_order_and_metadata(frame):
    workbook = DataFrameReader().read(
        {"First": frame, "Second": frame.head(1)}, file_path="/data/report.xlsx"
    )

    assert workbook.sheet_names == ["First", "Second"]
    assert [sheet.index for sheet in workbook.worksheets] == [0, 1]
    assert workbook.metadata.file_name == "report.xlsx"
    assert workbook.statistics.non_empty_cells == 10 + 6


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, None),
        (np.nan, None),
        (pd.NaT, None),
        (pd.NA, None),
        (np.int64(7), 7),
        (np.float64(2.5), 2.5),
        (np.bool_(True), True),
        (pd.Timestamp("2024-01-31 12:00"), datetime(2024, 1, 31, 12, 0)),
        (pd.Timedelta(hours=2), timedelta(hours=2)),
        ("text", "text"),
        ((1, 2), "(1, 2)"),
    ],
)
def test_to_cell_value(raw, expected):
    assert to_cell_value(raw) == expected
