"""Skeleton (pruned, renumbered) worksheet models."""

from pydantic import BaseModel, ConfigDict, Field

from .cell import CellAddress, CellData
from .workbook import WorkbookContext, WorkbookMetadata, WorksheetContext


class AddressMapping(BaseModel):
    """Two-way map between skeleton and original cell references."""

    skeleton_to_original: dict[str, str] = Field(default_factory=dict)
    original_to_skeleton: dict[str, str] = Field(default_factory=dict)
    row_mapping: dict[int, int] = Field(
        default_factory=dict, description="Original row -> skeleton row"
    )
    column_mapping: dict[int, int] = Field(
        default_factory=dict, description="Original column -> skeleton column"
    )

    def add(self, original: CellAddress, skeleton: CellAddress) -> None:
        self.original_to_skeleton[original.a1] = skeleton.a1
        self.skeleton_to_original[skeleton.a1] = original.a1

    def to_original(self, reference: str) -> str | None:
        return self.skeleton_to_original.get(CellAddress.from_a1(reference).a1)

    def to_skeleton(self, reference: str) -> str | None:
        return self.original_to_skeleton.get(CellAddress.from_a1(reference).a1)

    def is_bijective(self) -> bool:
        """Whether both maps invert each other exactly."""
        if len(self.skeleton_to_original) != len(self.original_to_skeleton):
            return False
        forward = all(
            self.original_to_skeleton.get(original) == skeleton
            for skeleton, original in self.skeleton_to_original.items()
        )
        backward = all(
            self.skeleton_to_original.get(skeleton) == original
            for original, skeleton in self.original_to_skeleton.items()
        )
        return forward and backward


class SkeletonStats(BaseModel):
    """Cell counts before and after skeleton extraction."""

    original_cell_count: int = Field(0, ge=0, description="Non-empty cells in the source")
    skeleton_cell_count: int = Field(0, ge=0, description="Cells retained")
    compression_ratio: float = Field(0.0, ge=0.0, le=1.0, description="1 - skeleton/original")
    preserved_rows: int = Field(0, ge=0)
    preserved_columns: int = Field(0, ge=0)
    discarded_cells: int = Field(0, ge=0)

    @classmethod
    def combine(cls, stats: list["SkeletonStats"]) -> "SkeletonStats":
        original = sum(s.original_cell_count for s in stats)
        kept = sum(s.skeleton_cell_count for s in stats)
        return cls(
            original_cell_count=original,
            skeleton_cell_count=kept,
            compression_ratio=(original - kept) / original if original > 0 else 0.0,
            preserved_rows=sum(s.preserved_rows for s in stats),
            preserved_columns=sum(s.preserved_columns for s in stats),
            discarded_cells=sum(s.discarded_cells for s in stats),
        )


class SkeletonWorksheet(BaseModel):
    """A pruned worksheet under compact, renumbered addresses."""

    model_config = ConfigDict(strict=True)

    name: str
    index: int = Field(0, ge=0)
    cells: dict[str, CellData] = Field(
        default_factory=dict, description="Retained cells keyed by skeleton address"
    )
    address_mapping: AddressMapping = Field(default_factory=AddressMapping)
    stats: SkeletonStats = Field(default_factory=SkeletonStats)
    warnings: list[str] = Field(default_factory=list)

    def to_worksheet_context(self) -> WorksheetContext:
        return WorksheetContext(name=self.name, index=self.index, cells=dict(self.cells))


class SkeletonWorkbook(BaseModel):
    """Skeletons of every worksheet plus aggregated statistics."""

    file_path: str | None = None
    metadata: WorkbookMetadata = Field(default_factory=WorkbookMetadata)
    sheets: list[SkeletonWorksheet] = Field(default_factory=list)
    global_stats: SkeletonStats = Field(default_factory=SkeletonStats)

    @property
    def warnings(self) -> list[str]:
        return [warning for sheet in self.sheets for warning in sheet.warnings]

    def get_sheet(self, name: str) -> SkeletonWorksheet | None:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        return None

    def to_workbook_context(self) -> WorkbookContext:
        """Skeleton as a regular workbook for downstream steps."""
        return WorkbookContext.from_worksheets(
            [sheet.to_worksheet_context() for sheet in self.sheets],
            file_path=self.file_path,
            metadata=self.metadata,
        )
