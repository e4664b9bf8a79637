"""Build workbooks from in-memory pandas DataFrames."""

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..models.cell import CellData, CellStyle, CellValue
from ..models.workbook import WorkbookContext, WorkbookMetadata, WorksheetContext

logger = logging.getLogger(__name__)


class DataFrameReader:
    """Turns ``{sheet name: DataFrame}`` into a WorkbookContext.

    Column labels become a bold header row when ``include_header`` is set.
    Missing values (NaN, None, NaT) become empty cells, numpy scalars are
    converted to Python scalars and pandas timestamps to datetimes.
    """

    def __init__(self, header_style: CellStyle | None = None):
        self.header_style = header_style or CellStyle(is_bold=True)

    def read(
        self,
        frames: dict[str, pd.DataFrame],
        include_header: bool = True,
        number_formats: dict[str, str] | None = None,
        file_path: str | None = None,
    ) -> WorkbookContext:
        """
        Build a workbook from DataFrames.

        Args:
            frames: Sheet name -> DataFrame, in sheet order
            include_header: Emit the column labels as the first row
            number_formats: Column label -> number format applied to that column's cells
            file_path: Optional source path recorded on the workbook

        Returns:
            WorkbookContext with statistics computed
        """
        number_formats = number_formats or {}
        worksheets = [
            self.read_frame(name, frame, index, include_header, number_formats)
            for index, (name, frame) in enumerate(frames.items())
        ]

        metadata = WorkbookMetadata(file_name=Path(file_path).name if file_path else None)
        workbook = WorkbookContext.from_worksheets(worksheets, file_path=file_path, metadata=metadata)
        logger.info(f"Read {len(worksheets)} sheets from DataFrames")
        return workbook

    def read_frame(
        self,
        name: str,
        frame: pd.DataFrame,
        index: int = 0,
        include_header: bool = True,
        number_formats: dict[str, str] | None = None,
    ) -> WorksheetContext:
        number_formats = number_formats or {}
        worksheet = WorksheetContext(name=name, index=index)
        row_offset = 0

        if include_header:
            for col, label in enumerate(frame.columns):
                worksheet.set_cell(
                    CellData(row=0, column=col, value=str(label), style=self.header_style)
                )
            row_offset = 1

        for row, values in enumerate(frame.itertuples(index=False, name=None)):
            for col, raw in enumerate(values):
                value = to_cell_value(raw)
                if value is None:
                    continue
                worksheet.set_cell(
                    CellData(
                        row=row + row_offset,
                        column=col,
                        value=value,
                        number_format=number_formats.get(str(frame.columns[col])),
                    )
                )

        logger.debug(f"Sheet '{name}': {len(worksheet.cells)} cells from {frame.shape} frame")
        return worksheet


def to_cell_value(raw: Any) -> CellValue:
    """Convert a DataFrame element to a plain Python cell value."""
    if raw is None or raw is pd.NaT or raw is pd.NA:
        return None
    if isinstance(raw, pd.Timestamp):
        return raw.to_pydatetime()
    if isinstance(raw, pd.Timedelta):
        return raw.to_pytimedelta()
    if isinstance(raw, np.generic):
        raw = raw.item()
    if isinstance(raw, float) and np.isnan(raw):
        return None
    if isinstance(raw, str | bool | int | float | Decimal | datetime | date | time | timedelta):
        return raw
    return str(raw)
