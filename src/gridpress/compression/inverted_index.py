"""Inverted-index translation: value -> addresses, with range compaction."""

import json
import logging

from ..core.constants import INVERTED_INDEX
from ..models.cell import CellAddress
from ..models.workbook import WorksheetContext
from .options import InvertedIndexOptions

logger = logging.getLogger(__name__)

IndexEntry = str | list[str]


def compact_addresses(addresses: list[CellAddress]) -> IndexEntry:
    """Collapse contiguous runs of addresses into ``first:last`` ranges.

    Addresses are sorted column-major. A vertical run (same column, consecutive
    rows) is tried first, then a horizontal run (same row, consecutive columns)
    of adjacent sorted entries. Runs shorter than the minimum stay as single
    references. One result is returned as a bare string.
    """
    ordered = sorted(addresses, key=lambda a: (a.column, a.row))
    min_run = INVERTED_INDEX.MIN_RUN_LENGTH
    results: list[str] = []
    i = 0

    while i < len(ordered):
        start = ordered[i]

        j = i + 1
        while (
            j < len(ordered)
            and ordered[j].column == start.column
            and ordered[j].row == ordered[j - 1].row + 1
        ):
            j += 1
        if j - i >= min_run:
            results.append(f"{start.a1}:{ordered[j - 1].a1}")
            i = j
            continue

        j = i + 1
        while (
            j < len(ordered)
            and ordered[j].row == start.row
            and ordered[j].column == ordered[j - 1].column + 1
        ):
            j += 1
        if j - i >= min_run:
            results.append(f"{start.a1}:{ordered[j - 1].a1}")
            i = j
            continue

        results.append(start.a1)
        i += 1

    return results[0] if len(results) == 1 else results


class InvertedIndexTranslator:
    """Groups a worksheet's cells by identical value (and optionally format)."""

    def __init__(self, options: InvertedIndexOptions | None = None):
        self.options = options or InvertedIndexOptions()

    def build_index(
        self, worksheet: WorksheetContext, options: InvertedIndexOptions | None = None
    ) -> dict[str, IndexEntry]:
        """Map each key to its reference list or compacted range form.

        Keys appear in the order their first cell is met in row-major order.
        """
        options = options or self.options
        groups: dict[str, list[CellAddress]] = {}

        for cell in worksheet.get_non_empty_cells():
            key = cell.string_value
            if not key.strip():
                if not cell.formula:
                    continue
                key = f"={cell.formula}"
            if options.include_formats and cell.number_format:
                key = f"{key}{INVERTED_INDEX.KEY_SEPARATOR}{cell.number_format}"
            groups.setdefault(key, []).append(cell.address)

        index: dict[str, IndexEntry] = {}
        for key, addresses in groups.items():
            if options.optimize_ranges and len(addresses) >= options.range_threshold:
                index[key] = compact_addresses(addresses)
            else:
                index[key] = [address.a1 for address in addresses]

        logger.debug(f"Indexed '{worksheet.name}' into {len(index)} keys")
        return index

    def to_inverted_index(
        self, worksheet: WorksheetContext, options: InvertedIndexOptions | None = None
    ) -> str:
        """Compact JSON object for one worksheet."""
        return to_json(self.build_index(worksheet, options))


def to_json(index: dict[str, IndexEntry]) -> str:
    return json.dumps(index, ensure_ascii=False, separators=(",", ":"))
