"""Format-aware aggregation of adjacent, same-typed cells.

Cells are visited in row-major order. Each unprocessed, typed cell seeds a
breadth-first flood fill over its up/down/left/right neighbours; a neighbour
joins the component when its type matches the seed's. Components of at least
``min_group_size`` cells collapse into one region spanning their bounding box;
every other non-empty cell is emitted as a single-cell region carrying its
literal value.
"""

import logging
from collections import deque
from dataclasses import dataclass, field

from ..models.cell import CellAddress, CellData
from ..models.compression import AggregatedRegion, AggregatedWorksheet, compression_ratio
from ..models.workbook import WorksheetContext
from .options import FormatAggregationOptions
from .type_recognizers import TypeInfo, determine_type

logger = logging.getLogger(__name__)

_DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))


@dataclass
class TypedComponent:
    """Connected cells sharing the seed's type."""

    seed: TypeInfo
    cells: list[CellAddress] = field(default_factory=list)
    min_row: int | None = None
    max_row: int | None = None
    min_col: int | None = None
    max_col: int | None = None

    def add_cell(self, address: CellAddress) -> None:
        """Add a cell to the component and update bounds."""
        self.cells.append(address)

        if self.min_row is None or address.row < self.min_row:
            self.min_row = address.row
        if self.max_row is None or address.row > self.max_row:
            self.max_row = address.row
        if self.min_col is None or address.column < self.min_col:
            self.min_col = address.column
        if self.max_col is None or address.column > self.max_col:
            self.max_col = address.column

    def to_region(self) -> AggregatedRegion:
        return AggregatedRegion(
            start_row=self.min_row,
            start_column=self.min_col,
            end_row=self.max_row,
            end_column=self.max_col,
            type_token=self.seed.token,
            format_string=self.seed.format_string,
            cell_count=len(self.cells),
        )


class FormatAwareAggregator:
    """Merges adjacent same-typed cells into rectangular regions."""

    def __init__(self, options: FormatAggregationOptions | None = None):
        self.options = options or FormatAggregationOptions()

    def aggregate(
        self, worksheet: WorksheetContext, options: FormatAggregationOptions | None = None
    ) -> AggregatedWorksheet:
        """Partition a worksheet's non-empty cells into aggregated regions.

        Args:
            worksheet: Worksheet to aggregate
            options: Overrides the aggregator's default options for this call

        Returns:
            AggregatedWorksheet whose regions cover every non-empty cell exactly once
        """
        options = options or self.options
        recognizers = options.recognizers

        cells = worksheet.get_non_empty_cells()
        types: dict[CellAddress, TypeInfo | None] = {
            cell.address: determine_type(
                cell.value, cell.number_format, recognizers, options.enable_type_recognition
            )
            for cell in cells
        }

        processed: set[CellAddress] = set()
        regions: list[AggregatedRegion] = []

        for cell in cells:
            address = cell.address
            if address in processed:
                continue

            seed_type = types[address]
            if seed_type is None:
                continue

            component = self._flood_fill(address, seed_type, types, processed)
            if len(component.cells) >= options.min_group_size:
                regions.append(component.to_region())
                processed.update(component.cells)

        for cell in cells:
            if cell.address not in processed:
                regions.append(
                    self._singleton(cell, types[cell.address], options.include_formulas)
                )

        result = AggregatedWorksheet(
            name=worksheet.name,
            regions=regions,
            original_cell_count=len(cells),
            compression_ratio=compression_ratio(len(cells), len(regions)),
        )

        logger.debug(
            f"Aggregated {len(cells)} cells of '{worksheet.name}' into {len(regions)} regions"
        )
        return result

    def _flood_fill(
        self,
        start: CellAddress,
        seed_type: TypeInfo,
        types: dict[CellAddress, TypeInfo | None],
        processed: set[CellAddress],
    ) -> TypedComponent:
        """Breadth-first fill from ``start`` over cells of the seed's type."""
        component = TypedComponent(seed=seed_type)
        component.add_cell(start)
        checked = {start}
        queue = deque([start])

        while queue:
            current = queue.popleft()
            for d_row, d_col in _DIRECTIONS:
                row, col = current.row + d_row, current.column + d_col
                if row < 0 or col < 0:
                    continue

                neighbor = CellAddress(row, col)
                if neighbor in checked or neighbor in processed or neighbor not in types:
                    continue

                neighbor_type = types[neighbor]
                if neighbor_type is not None and seed_type.is_same_type(neighbor_type):
                    checked.add(neighbor)
                    component.add_cell(neighbor)
                    queue.append(neighbor)

        return component

    @staticmethod
    def _singleton(
        cell: CellData, type_info: TypeInfo | None, include_formula: bool
    ) -> AggregatedRegion:
        return AggregatedRegion(
            start_row=cell.row,
            start_column=cell.column,
            end_row=cell.row,
            end_column=cell.column,
            type_token=type_info.token if type_info else cell.string_value,
            format_string=cell.number_format,
            cell_count=1,
            value=cell.display_value,
            formula=cell.formula if include_formula else None,
        )
