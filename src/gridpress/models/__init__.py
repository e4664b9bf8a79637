"""Data models for GridPress."""

from .anchors import (
    AnchorMetrics,
    CrossSheetPattern,
    HeaderRegion,
    HeaderType,
    StructuralAnchors,
    WorkbookAnchors,
)
from .cell import (
    CellAddress,
    CellData,
    CellStyle,
    CellValueType,
    column_to_letter,
    letter_to_column,
)
from .compression import (
    AggregatedRegion,
    AggregatedWorksheet,
    Artifact,
    CompressionReport,
    CompressionResult,
    CompressionStatistics,
    CompressionStrategy,
    FormatAggregationOutput,
    InvertedIndexOutput,
    StepOutput,
    StepResult,
    compression_ratio,
)
from .skeleton import AddressMapping, SkeletonStats, SkeletonWorkbook, SkeletonWorksheet
from .workbook import (
    WorkbookContext,
    WorkbookMetadata,
    WorkbookStatistics,
    WorksheetContext,
    WorksheetDimensions,
)

__all__ = [
    "AddressMapping",
    "AggregatedRegion",
    "AggregatedWorksheet",
    "AnchorMetrics",
    "Artifact",
    "CellAddress",
    "CellData",
    "CellStyle",
    "CellValueType",
    "CompressionReport",
    "CompressionResult",
    "CompressionStatistics",
    "CompressionStrategy",
    "CrossSheetPattern",
    "FormatAggregationOutput",
    "HeaderRegion",
    "HeaderType",
    "InvertedIndexOutput",
    "SkeletonStats",
    "SkeletonWorkbook",
    "SkeletonWorksheet",
    "StepOutput",
    "StepResult",
    "StructuralAnchors",
    "WorkbookAnchors",
    "WorkbookContext",
    "WorkbookMetadata",
    "WorkbookStatistics",
    "WorksheetContext",
    "WorksheetDimensions",
    "column_to_letter",
    "compression_ratio",
    "letter_to_column",
]
