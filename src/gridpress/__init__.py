"""GridPress - Spreadsheet compression for language-model prompts."""

__version__ = "0.1.0"

from gridpress.compression.strategies import CompressionRequest, CustomStrategyConfig
from gridpress.config import Config
from gridpress.gridpress import GridPress
from gridpress.models import (
    CellData,
    CompressionReport,
    CompressionResult,
    CompressionStrategy,
    WorkbookContext,
    WorksheetContext,
)

__all__ = [
    "CellData",
    "CompressionReport",
    "CompressionRequest",
    "CompressionResult",
    "CompressionStrategy",
    "Config",
    "CustomStrategyConfig",
    "GridPress",
    "WorkbookContext",
    "WorksheetContext",
]
