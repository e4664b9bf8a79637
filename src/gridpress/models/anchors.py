"""Structural anchor models."""

from enum import Enum

from pydantic import BaseModel, Field

from .cell import column_to_letter


class HeaderType(Enum):
    """Shape of a detected header block."""

    SINGLE = "single"
    MULTI_LEVEL = "multi_level"


class HeaderRegion(BaseModel):
    """A block of leading header rows."""

    start_row: int = Field(..., ge=0, description="First header row")
    end_row: int = Field(..., ge=0, description="Last header row (inclusive)")
    start_column: int = Field(..., ge=0, description="First header column")
    end_column: int = Field(..., ge=0, description="Last header column (inclusive)")
    header_row: int = Field(..., ge=0, description="Row holding the column names")
    column_names: list[str] = Field(default_factory=list, description="Names in column order")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Detection confidence")
    header_type: HeaderType = Field(HeaderType.SINGLE, description="Single or multi-level")

    @property
    def top_left(self) -> str:
        return f"{column_to_letter(self.start_column)}{self.start_row + 1}"

    @property
    def bottom_right(self) -> str:
        return f"{column_to_letter(self.end_column)}{self.end_row + 1}"

    def contains(self, row: int, column: int) -> bool:
        return (
            self.start_row <= row <= self.end_row and self.start_column <= column <= self.end_column
        )


class AnchorMetrics(BaseModel):
    """Summary figures for one worksheet's anchors."""

    total_anchors: int = Field(0, ge=0, description="Anchor rows plus anchor columns")
    anchor_density: float = Field(0.0, ge=0.0, description="Anchors per row/column index")
    average_anchor_distance: float = Field(0.0, ge=0.0, description="Mean gap between anchor rows")
    row_heterogeneity_average: float = Field(0.0, ge=0.0)
    row_heterogeneity_max: float = Field(0.0, ge=0.0)
    column_heterogeneity_average: float = Field(0.0, ge=0.0)
    column_heterogeneity_max: float = Field(0.0, ge=0.0)


class StructuralAnchors(BaseModel):
    """Anchor rows/columns of a worksheet and their k-neighborhood."""

    sheet_name: str = Field(..., description="Worksheet name")
    anchor_rows: list[int] = Field(default_factory=list, description="Sorted anchor rows")
    anchor_columns: list[int] = Field(default_factory=list, description="Sorted anchor columns")
    neighborhood_rows: list[int] = Field(
        default_factory=list, description="Anchor rows expanded by k, sorted"
    )
    neighborhood_columns: list[int] = Field(
        default_factory=list, description="Anchor columns expanded by k, sorted"
    )
    header_regions: list[HeaderRegion] = Field(default_factory=list)
    k: int = Field(0, ge=0, description="Neighborhood expansion factor")
    metrics: AnchorMetrics = Field(default_factory=AnchorMetrics)

    @property
    def is_empty(self) -> bool:
        return not (self.anchor_rows or self.anchor_columns or self.header_regions)

    @property
    def signature(self) -> str:
        """Shape signature used to group structurally similar sheets."""
        return (
            f"R{len(self.anchor_rows)}_C{len(self.anchor_columns)}_H{len(self.header_regions)}"
        )


class CrossSheetPattern(BaseModel):
    """Sheets that share an anchor signature."""

    pattern_name: str
    signature: str
    sheet_names: list[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)


class WorkbookAnchors(BaseModel):
    """Per-sheet anchors plus workbook-level aggregates."""

    sheets: list[StructuralAnchors] = Field(default_factory=list)
    cross_sheet_patterns: list[CrossSheetPattern] = Field(default_factory=list)
    total_anchors: int = Field(0, ge=0)
    average_anchors_per_sheet: float = Field(0.0, ge=0.0)
    average_anchor_distance: float = Field(0.0, ge=0.0)
    global_heterogeneity: float = Field(0.0, ge=0.0)
    structural_consistency: float = Field(1.0, ge=0.0, le=1.0)

    def for_sheet(self, name: str) -> StructuralAnchors | None:
        for anchors in self.sheets:
            if anchors.sheet_name == name:
                return anchors
        return None
