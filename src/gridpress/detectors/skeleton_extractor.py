"""Skeleton extraction: keep structurally relevant cells and renumber them."""

import asyncio

from ..compression.options import SkeletonExtractionOptions
from ..models.anchors import StructuralAnchors, WorkbookAnchors
from ..models.cell import CellData, CellValueType
from ..models.skeleton import AddressMapping, SkeletonStats, SkeletonWorkbook, SkeletonWorksheet
from ..models.workbook import WorkbookContext, WorksheetContext
from ..utils.cancellation import raise_if_cancelled
from ..utils.logging_context import SheetContext, get_contextual_logger

logger = get_contextual_logger(__name__)


class SkeletonExtractor:
    """Prunes worksheets down to anchor-related cells.

    A cell survives when it sits on an anchor row or column, inside the anchor
    neighborhood (if nearby preservation is enabled), inside a header region, or
    when it is a formula or distinctively styled cell that the options ask to
    preserve. Surviving rows and columns are packed into a contiguous 0-based
    grid and the old/new addresses are recorded in both directions.
    """

    def __init__(self, options: SkeletonExtractionOptions | None = None):
        self.options = options or SkeletonExtractionOptions()

    def extract(
        self,
        worksheet: WorksheetContext,
        anchors: StructuralAnchors,
        options: SkeletonExtractionOptions | None = None,
    ) -> SkeletonWorksheet:
        options = options or self.options
        cells = worksheet.get_non_empty_cells()

        if not cells:
            return SkeletonWorksheet(name=worksheet.name, index=worksheet.index)

        retention = _Retention(anchors, options)
        kept = [cell for cell in cells if retention.keeps(cell)]

        row_map = {row: i for i, row in enumerate(sorted({cell.row for cell in kept}))}
        col_map = {col: i for i, col in enumerate(sorted({cell.column for cell in kept}))}

        mapping = AddressMapping(row_mapping=row_map, column_mapping=col_map)
        skeleton_cells: dict[str, CellData] = {}
        for cell in kept:
            moved = cell.moved_to(row_map[cell.row], col_map[cell.column])
            mapping.add(cell.address, moved.address)
            skeleton_cells[moved.excel_address] = moved

        original = len(cells)
        ratio = 1.0 - len(kept) / original
        stats = SkeletonStats(
            original_cell_count=original,
            skeleton_cell_count=len(kept),
            compression_ratio=ratio,
            preserved_rows=len(row_map),
            preserved_columns=len(col_map),
            discarded_cells=original - len(kept),
        )

        warnings = []
        if ratio < options.min_compression_ratio:
            message = (
                f"Compression ratio {ratio:.1%} for sheet '{worksheet.name}' is below "
                f"the minimum of {options.min_compression_ratio:.1%}"
            )
            logger.warning(message)
            warnings.append(message)

        logger.debug(f"Kept {len(kept)} of {original} cells")
        return SkeletonWorksheet(
            name=worksheet.name,
            index=worksheet.index,
            cells=skeleton_cells,
            address_mapping=mapping,
            stats=stats,
            warnings=warnings,
        )

    def extract_workbook(
        self,
        workbook: WorkbookContext,
        workbook_anchors: WorkbookAnchors,
        options: SkeletonExtractionOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> SkeletonWorkbook:
        """Extract every worksheet's skeleton, in workbook order."""
        sheets = []
        for worksheet in workbook.worksheets:
            raise_if_cancelled(cancel_event, f"skeleton extraction of '{worksheet.name}'")
            anchors = workbook_anchors.for_sheet(worksheet.name) or StructuralAnchors(
                sheet_name=worksheet.name
            )
            with SheetContext(worksheet.name):
                sheets.append(self.extract(worksheet, anchors, options))

        return SkeletonWorkbook(
            file_path=workbook.file_path,
            metadata=workbook.metadata,
            sheets=sheets,
            global_stats=SkeletonStats.combine([sheet.stats for sheet in sheets]),
        )


class _Retention:
    """Row/column lookup sets for one worksheet's retention test."""

    def __init__(self, anchors: StructuralAnchors, options: SkeletonExtractionOptions):
        self.anchors = anchors
        self.options = options
        self.rows = set(anchors.anchor_rows)
        self.columns = set(anchors.anchor_columns)
        nearby = options.preserve_nearby_non_empty
        self.nearby_rows = set(anchors.neighborhood_rows) if nearby else set()
        self.nearby_columns = set(anchors.neighborhood_columns) if nearby else set()

    def keeps(self, cell: CellData) -> bool:
        if cell.row in self.rows or cell.column in self.columns:
            return True
        if cell.row in self.nearby_rows or cell.column in self.nearby_columns:
            return True
        if any(region.contains(cell.row, cell.column) for region in self.anchors.header_regions):
            return True
        if self.options.preserve_formulas and cell.data_type is CellValueType.FORMULA:
            return True
        return bool(
            self.options.preserve_formatted_cells
            and cell.style is not None
            and cell.style.is_distinctive
        )
