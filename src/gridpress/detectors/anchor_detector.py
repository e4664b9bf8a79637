"""Structural anchor detection.

Rows and columns are scored by how heterogeneous their cells are (data types,
number formats, bold and fill variation, text/number mix). High-scoring
indices, and both sides of any abrupt type or bold transition, become anchors.
Leading header rows are detected separately and reported as header regions.
"""

import asyncio
from collections import Counter, defaultdict

import numpy as np

from ..compression.options import AnchorDetectionOptions
from ..core.constants import ANCHOR_DETECTION
from ..models.anchors import (
    AnchorMetrics,
    CrossSheetPattern,
    HeaderRegion,
    HeaderType,
    StructuralAnchors,
    WorkbookAnchors,
)
from ..models.cell import CellData, CellValueType
from ..models.workbook import WorkbookContext, WorksheetContext
from ..utils.cancellation import raise_if_cancelled
from ..utils.logging_context import SheetContext, get_contextual_logger

logger = get_contextual_logger(__name__)

_DATA_TYPE_COUNT = len(CellValueType)


class StructuralAnchorDetector:
    """Finds structurally significant rows and columns."""

    def __init__(self, options: AnchorDetectionOptions | None = None):
        self.options = options or AnchorDetectionOptions()

    def find_anchors(
        self,
        worksheet: WorksheetContext,
        k: int = ANCHOR_DETECTION.DEFAULT_NEIGHBORHOOD,
        options: AnchorDetectionOptions | None = None,
    ) -> StructuralAnchors:
        """Detect anchors, their k-neighborhood and header regions for one sheet.

        Args:
            worksheet: Worksheet to analyze
            k: Neighborhood expansion applied around every anchor
            options: Overrides the detector's default options for this call

        Returns:
            StructuralAnchors; empty for a sheet with no data
        """
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")

        options = options or self.options
        cells = worksheet.get_non_empty_cells()
        if not cells:
            return StructuralAnchors(sheet_name=worksheet.name, k=k)

        dims = worksheet.dimensions

        by_row: dict[int, list[CellData]] = defaultdict(list)
        by_col: dict[int, list[CellData]] = defaultdict(list)
        for cell in cells:
            by_row[cell.row].append(cell)
            by_col[cell.column].append(cell)

        row_anchors, row_scores = self._analyze_groups(by_row, options)
        col_anchors, col_scores = self._analyze_groups(by_col, options)
        headers = self._detect_headers(by_row, dims.first_row, options)

        anchors = StructuralAnchors(
            sheet_name=worksheet.name,
            anchor_rows=sorted(row_anchors),
            anchor_columns=sorted(col_anchors),
            neighborhood_rows=_expand(row_anchors, k, dims.first_row, dims.last_row),
            neighborhood_columns=_expand(col_anchors, k, dims.first_column, dims.last_column),
            header_regions=headers,
            k=k,
            metrics=_calculate_metrics(
                row_anchors, col_anchors, row_scores, col_scores, dims.last_row, dims.last_column
            ),
        )

        logger.debug(
            f"Found {len(anchors.anchor_rows)} anchor rows, "
            f"{len(anchors.anchor_columns)} anchor columns, {len(headers)} header regions"
        )
        return anchors

    def find_workbook_anchors(
        self,
        workbook: WorkbookContext,
        k: int = ANCHOR_DETECTION.DEFAULT_NEIGHBORHOOD,
        options: AnchorDetectionOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> WorkbookAnchors:
        """Run anchor detection on every sheet and aggregate the results."""
        sheets = []
        for worksheet in workbook.worksheets:
            raise_if_cancelled(cancel_event, f"anchor detection of '{worksheet.name}'")
            with SheetContext(worksheet.name):
                sheets.append(self.find_anchors(worksheet, k, options))

        total = sum(len(a.anchor_rows) + len(a.anchor_columns) for a in sheets)
        distances = [a.metrics.average_anchor_distance for a in sheets]
        distances = [d for d in distances if d > 0]
        heterogeneity = [
            score
            for a in sheets
            for score in (
                a.metrics.row_heterogeneity_average,
                a.metrics.column_heterogeneity_average,
                a.metrics.row_heterogeneity_max,
                a.metrics.column_heterogeneity_max,
            )
        ]

        return WorkbookAnchors(
            sheets=sheets,
            cross_sheet_patterns=_cross_sheet_patterns(sheets),
            total_anchors=total,
            average_anchors_per_sheet=total / len(sheets) if sheets else 0.0,
            average_anchor_distance=float(np.mean(distances)) if distances else 0.0,
            global_heterogeneity=float(np.mean(heterogeneity)) if heterogeneity else 0.0,
            structural_consistency=_structural_consistency(sheets),
        )

    def _analyze_groups(
        self, groups: dict[int, list[CellData]], options: AnchorDetectionOptions
    ) -> tuple[set[int], dict[int, float]]:
        anchors: set[int] = set()
        scores: dict[int, float] = {}
        previous: tuple[int, list[CellData]] | None = None

        for index in sorted(groups):
            cells = groups[index]
            score = heterogeneity_score(cells, options)
            scores[index] = score
            if score >= options.min_heterogeneity_score:
                anchors.add(index)

            if previous is not None and _has_significant_change(previous[1], cells, options):
                anchors.add(previous[0])
                anchors.add(index)
            previous = (index, cells)

        return anchors, scores

    def _detect_headers(
        self,
        by_row: dict[int, list[CellData]],
        first_row: int,
        options: AnchorDetectionOptions,
    ) -> list[HeaderRegion]:
        if not options.detect_multi_level_headers:
            row_cells = by_row[min(by_row)]
            if not is_likely_header(row_cells):
                return []
            return [_header_region(row_cells, ANCHOR_DETECTION.SIMPLE_HEADER_CONFIDENCE)]

        header_cells: list[CellData] = []
        header_rows: list[int] = []
        for row in sorted(r for r in by_row if r <= first_row + options.max_header_depth):
            if is_likely_header(by_row[row]):
                header_rows.append(row)
                header_cells.extend(by_row[row])
            elif header_rows:
                break

        if not header_rows:
            return []
        return [_header_region(header_cells, ANCHOR_DETECTION.MULTI_LEVEL_HEADER_CONFIDENCE)]


def heterogeneity_score(cells: list[CellData], options: AnchorDetectionOptions) -> float:
    """Average of the applicable diversity factors for one row or column."""
    if not cells:
        return 0.0

    factors = [len({cell.data_type for cell in cells}) / _DATA_TYPE_COUNT]

    if options.consider_number_formats:
        formats = len({cell.number_format for cell in cells})
        factors.append(min(formats / ANCHOR_DETECTION.FORMAT_DIVERSITY_DIVISOR, 1.0))

    if options.consider_styles:
        bold = sum(1 for cell in cells if cell.is_bold)
        colors = len({cell.background_color for cell in cells})
        factors.append(ANCHOR_DETECTION.MIXED_BOLD_SCORE if 0 < bold < len(cells) else 0.0)
        factors.append(min(colors / ANCHOR_DETECTION.BACKGROUND_DIVERSITY_DIVISOR, 1.0))

    text = sum(1 for cell in cells if cell.data_type is CellValueType.STRING)
    numeric = sum(1 for cell in cells if cell.data_type is CellValueType.NUMBER)
    if text and numeric:
        factors.append(min(text, numeric) / max(text, numeric))

    return float(np.mean(factors))


def is_likely_header(cells: list[CellData]) -> bool:
    """Mostly unique strings, no formulas, and bold or almost entirely text."""
    cells = [cell for cell in cells if not cell.is_empty]
    if not cells:
        return False

    count = len(cells)
    string_ratio = sum(1 for c in cells if c.data_type is CellValueType.STRING) / count
    has_bold = any(cell.is_bold for cell in cells)
    has_formulas = any(cell.data_type is CellValueType.FORMULA for cell in cells)
    unique_ratio = len({cell.display_value for cell in cells}) / count

    return (
        string_ratio > ANCHOR_DETECTION.HEADER_STRING_RATIO
        and not has_formulas
        and unique_ratio > ANCHOR_DETECTION.HEADER_UNIQUE_RATIO
        and (has_bold or string_ratio > ANCHOR_DETECTION.HEADER_STRONG_STRING_RATIO)
    )


def _has_significant_change(
    previous: list[CellData], current: list[CellData], options: AnchorDetectionOptions
) -> bool:
    previous_types = {cell.data_type for cell in previous}
    current_types = {cell.data_type for cell in current}
    if previous_types and current_types and not previous_types & current_types:
        return True

    if options.consider_styles:
        previous_bold = any(cell.is_bold for cell in previous)
        current_bold = any(cell.is_bold for cell in current)
        if previous_bold != current_bold:
            return True

    return False


def _header_region(cells: list[CellData], confidence: float) -> HeaderRegion:
    rows = sorted({cell.row for cell in cells})
    header_row = rows[-1]
    names = [cell.display_value for cell in sorted(cells, key=lambda c: c.column) if cell.row == header_row]
    return HeaderRegion(
        start_row=rows[0],
        end_row=header_row,
        start_column=min(cell.column for cell in cells),
        end_column=max(cell.column for cell in cells),
        header_row=header_row,
        column_names=names,
        confidence=confidence,
        header_type=HeaderType.MULTI_LEVEL if len(rows) > 1 else HeaderType.SINGLE,
    )


def _expand(anchors: set[int], k: int, min_index: int, max_index: int) -> list[int]:
    expanded = set(anchors)
    for anchor in anchors:
        expanded.update(range(max(min_index, anchor - k), min(max_index, anchor + k) + 1))
    return sorted(expanded)


def _calculate_metrics(
    row_anchors: set[int],
    col_anchors: set[int],
    row_scores: dict[int, float],
    col_scores: dict[int, float],
    last_row: int,
    last_col: int,
) -> AnchorMetrics:
    total = len(row_anchors) + len(col_anchors)
    possible = last_row + last_col + 2

    distance = 0.0
    if len(row_anchors) > 1:
        distance = float(np.mean(np.diff(sorted(row_anchors))))

    row_values = np.array(list(row_scores.values()) or [0.0])
    col_values = np.array(list(col_scores.values()) or [0.0])

    return AnchorMetrics(
        total_anchors=total,
        anchor_density=total / possible if possible > 0 else 0.0,
        average_anchor_distance=distance,
        row_heterogeneity_average=float(row_values.mean()),
        row_heterogeneity_max=float(row_values.max()),
        column_heterogeneity_average=float(col_values.mean()),
        column_heterogeneity_max=float(col_values.max()),
    )


def _cross_sheet_patterns(sheets: list[StructuralAnchors]) -> list[CrossSheetPattern]:
    groups: dict[str, list[str]] = {}
    for anchors in sheets:
        groups.setdefault(anchors.signature, []).append(anchors.sheet_name)

    patterns = []
    for signature, names in groups.items():
        if len(names) < 2:
            continue
        patterns.append(
            CrossSheetPattern(
                pattern_name=f"Pattern_{len(patterns) + 1}",
                signature=signature,
                sheet_names=names,
                confidence=len(names) / len(sheets),
            )
        )
    return patterns


def _structural_consistency(sheets: list[StructuralAnchors]) -> float:
    """1.0 when every sheet shares one signature, falling to 0 when all differ."""
    if len(sheets) < 2:
        return 1.0
    unique = len(Counter(anchors.signature for anchors in sheets))
    return 1.0 - (unique - 1) / (len(sheets) - 1)
