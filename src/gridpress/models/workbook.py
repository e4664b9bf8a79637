"""Worksheet and workbook context models."""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .cell import CellData, CellValueType, column_to_letter


class WorksheetDimensions(BaseModel):
    """Bounding box and cell counts of a worksheet's non-empty content."""

    model_config = ConfigDict(strict=True)

    first_row: int = Field(0, ge=0, description="First row with data")
    last_row: int = Field(0, ge=0, description="Last row with data")
    first_column: int = Field(0, ge=0, description="First column with data")
    last_column: int = Field(0, ge=0, description="Last column with data")
    total_cells: int = Field(0, ge=0, description="Cells in the bounding box")
    non_empty_cells: int = Field(0, ge=0, description="Cells carrying a value or formula")

    @property
    def excel_range(self) -> str:
        start = f"{column_to_letter(self.first_column)}{self.first_row + 1}"
        end = f"{column_to_letter(self.last_column)}{self.last_row + 1}"
        return f"{start}:{end}"


class WorksheetContext(BaseModel):
    """Represents a complete worksheet with all its cells."""

    model_config = ConfigDict(strict=True)

    name: str = Field(..., description="Sheet name")
    index: int = Field(0, ge=0, description="Position of the sheet in the workbook")
    cells: dict[str, CellData] = Field(
        default_factory=dict, description="Cells indexed by Excel address (e.g., 'A1')"
    )

    @classmethod
    def from_cells(cls, name: str, cells: Iterable[CellData], index: int = 0) -> "WorksheetContext":
        worksheet = cls(name=name, index=index)
        for cell in cells:
            worksheet.set_cell(cell)
        return worksheet

    def set_cell(self, cell: CellData) -> None:
        """Store a cell under its own address, replacing any previous one."""
        self.cells[cell.excel_address] = cell

    def get_cell(self, row: int, column: int) -> CellData | None:
        """Get cell data by row and column indices."""
        return self.cells.get(f"{column_to_letter(column)}{row + 1}")

    def get_non_empty_cells(self) -> list[CellData]:
        """Non-empty cells in row-major order."""
        cells = [cell for cell in self.cells.values() if not cell.is_empty]
        cells.sort(key=lambda c: (c.row, c.column))
        return cells

    @property
    def dimensions(self) -> WorksheetDimensions:
        non_empty = [cell for cell in self.cells.values() if not cell.is_empty]
        if not non_empty:
            return WorksheetDimensions()

        rows = [cell.row for cell in non_empty]
        cols = [cell.column for cell in non_empty]
        first_row, last_row = min(rows), max(rows)
        first_col, last_col = min(cols), max(cols)
        return WorksheetDimensions(
            first_row=first_row,
            last_row=last_row,
            first_column=first_col,
            last_column=last_col,
            total_cells=(last_row - first_row + 1) * (last_col - first_col + 1),
            non_empty_cells=len(non_empty),
        )


class WorkbookMetadata(BaseModel):
    """File-level metadata supplied by the loader."""

    model_config = ConfigDict(strict=True)

    file_name: str | None = Field(None, description="File name without directory")
    file_size: int | None = Field(None, ge=0, description="File size in bytes")
    author: str | None = Field(None, description="Document author")
    last_modified_by: str | None = Field(None, description="Last editor")
    created_at: datetime | None = Field(None, description="Creation timestamp")
    modified_at: datetime | None = Field(None, description="Last modification timestamp")
    custom_properties: dict[str, str] = Field(
        default_factory=dict, description="Custom document properties"
    )


class WorkbookStatistics(BaseModel):
    """Aggregate cell statistics across all worksheets."""

    model_config = ConfigDict(strict=True)

    total_cells: int = Field(0, ge=0, description="Sum of worksheet bounding-box areas")
    non_empty_cells: int = Field(0, ge=0, description="Cells carrying a value or formula")
    empty_percentage: float = Field(0.0, ge=0.0, le=100.0, description="Share of empty cells")
    data_type_distribution: dict[CellValueType, int] = Field(
        default_factory=dict, description="Non-empty cell count per data type"
    )
    number_format_distribution: dict[str, int] = Field(
        default_factory=dict, description="Non-empty cell count per number format"
    )

    @classmethod
    def from_worksheets(cls, worksheets: Iterable[WorksheetContext]) -> "WorkbookStatistics":
        total = 0
        non_empty = 0
        type_counts: Counter[CellValueType] = Counter()
        format_counts: Counter[str] = Counter()

        for worksheet in worksheets:
            dims = worksheet.dimensions
            total += dims.total_cells
            non_empty += dims.non_empty_cells
            for cell in worksheet.cells.values():
                if cell.is_empty:
                    continue
                type_counts[cell.data_type] += 1
                if cell.number_format:
                    format_counts[cell.number_format] += 1

        empty_percentage = (total - non_empty) * 100.0 / total if total > 0 else 0.0
        return cls(
            total_cells=total,
            non_empty_cells=non_empty,
            empty_percentage=empty_percentage,
            data_type_distribution=dict(type_counts),
            number_format_distribution=dict(format_counts),
        )


class WorkbookContext(BaseModel):
    """A fully loaded workbook; read-only to the compression engine."""

    model_config = ConfigDict(strict=True)

    file_path: str | None = Field(None, description="Source path, if loaded from disk")
    metadata: WorkbookMetadata = Field(default_factory=WorkbookMetadata)
    worksheets: list[WorksheetContext] = Field(default_factory=list)
    statistics: WorkbookStatistics | None = Field(None, description="Aggregate statistics")

    @classmethod
    def from_worksheets(
        cls,
        worksheets: list[WorksheetContext],
        file_path: str | None = None,
        metadata: WorkbookMetadata | None = None,
    ) -> "WorkbookContext":
        """Build a workbook and compute its statistics."""
        return cls(
            file_path=file_path,
            metadata=metadata or WorkbookMetadata(),
            worksheets=worksheets,
            statistics=WorkbookStatistics.from_worksheets(worksheets),
        )

    def get_worksheet(self, name: str) -> WorksheetContext | None:
        for worksheet in self.worksheets:
            if worksheet.name == name:
                return worksheet
        return None

    @property
    def sheet_names(self) -> list[str]:
        return [worksheet.name for worksheet in self.worksheets]
