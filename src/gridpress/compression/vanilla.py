"""Uncompressed, row-by-row rendering of a workbook.

Used as the baseline for compression ratios and as the output of the
``none`` strategy.
"""

import logging

from pydantic import BaseModel, Field

from ..models.cell import CellData, CellValueType
from ..models.workbook import WorkbookContext, WorksheetContext

logger = logging.getLogger(__name__)


class VanillaSerializationOptions(BaseModel):
    """Options for the vanilla serializer."""

    include_empty_cells: bool = Field(False, description="Emit cells with no value")
    include_number_formats: bool = Field(True, description="Append number format strings")
    include_formulas: bool = Field(True, description="Append '=formula' text")
    include_styles: bool = Field(False, description="Append a compact style summary")
    cell_separator: str = Field(" | ", description="Separator between cells of a row")
    max_cells: int | None = Field(None, ge=0, description="Stop after this many cells")


class VanillaSerializer:
    """Serializes every cell, one line per row, under a header per sheet."""

    def __init__(self, options: VanillaSerializationOptions | None = None):
        self.options = options or VanillaSerializationOptions()

    def serialize(
        self, workbook: WorkbookContext, options: VanillaSerializationOptions | None = None
    ) -> str:
        options = options or self.options
        blocks = []
        emitted = 0

        for worksheet in workbook.worksheets:
            body, emitted, truncated = self._serialize_rows(worksheet, options, emitted)
            blocks.append(f"## Sheet: {worksheet.name}\n{body}")
            if truncated:
                break

        text = "\n\n".join(blocks)
        logger.debug(f"Serialized {emitted} cells into {len(text)} characters")
        return text

    def serialize_worksheet(
        self, worksheet: WorksheetContext, options: VanillaSerializationOptions | None = None
    ) -> str:
        body, _, _ = self._serialize_rows(worksheet, options or self.options, 0)
        return body

    def _serialize_rows(
        self, worksheet: WorksheetContext, options: VanillaSerializationOptions, emitted: int
    ) -> tuple[str, int, bool]:
        cells = sorted(worksheet.cells.values(), key=lambda c: (c.row, c.column))
        if not options.include_empty_cells:
            cells = [cell for cell in cells if not cell.is_empty]
        if not cells:
            return "(empty worksheet)", emitted, False

        lines: list[str] = []
        row_parts: list[str] = []
        current_row = cells[0].row
        truncated = False

        for cell in cells:
            if options.max_cells is not None and emitted >= options.max_cells:
                truncated = True
                break
            if cell.row != current_row:
                lines.append(options.cell_separator.join(row_parts))
                row_parts = []
                current_row = cell.row
            row_parts.append(self._format_cell(cell, options))
            emitted += 1

        if row_parts:
            lines.append(options.cell_separator.join(row_parts))
        if truncated:
            lines.append(f"... (truncated at {emitted} cells)")

        return "\n".join(lines), emitted, truncated

    @staticmethod
    def _format_cell(cell: CellData, options: VanillaSerializationOptions) -> str:
        if cell.data_type is CellValueType.EMPTY:
            value = "(empty)"
        elif cell.data_type is CellValueType.ERROR:
            value = f"#ERROR: {cell.display_value}"
        elif cell.data_type is CellValueType.FORMULA and cell.value is not None:
            value = cell.string_value
        else:
            value = cell.display_value

        text = f"{cell.excel_address}: {value}"
        if options.include_number_formats and cell.number_format:
            text += f" ({cell.number_format})"
        if options.include_formulas and cell.formula:
            text += f" ={cell.formula}"
        if options.include_styles and cell.style is not None:
            style = cell.style.describe()
            if style:
                text += f" {style}"
        return text
