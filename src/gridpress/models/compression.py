"""Compression result models."""

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from .cell import column_to_letter

if TYPE_CHECKING:
    from ..compression.pipeline import PipelineContext


def compression_ratio(original: float, compressed: float) -> float:
    """original / compressed, defined as 0 when nothing was produced."""
    if compressed <= 0:
        return 0.0
    return original / compressed


class AggregatedRegion(BaseModel):
    """Bounding box of a same-typed connected component, or a single cell."""

    start_row: int = Field(..., ge=0)
    start_column: int = Field(..., ge=0)
    end_row: int = Field(..., ge=0)
    end_column: int = Field(..., ge=0)
    type_token: str = Field(..., description="Type token, or the literal value of an untyped cell")
    format_string: str | None = Field(None, description="Format string of the seed cell")
    cell_count: int = Field(..., ge=1, description="Member cells, not bounding-box area")
    value: str | None = Field(None, description="Display value of a singleton region")
    formula: str | None = Field(
        None, description="Formula text of a singleton region, without the leading '='"
    )

    @property
    def start_address(self) -> str:
        return f"{column_to_letter(self.start_column)}{self.start_row + 1}"

    @property
    def end_address(self) -> str:
        return f"{column_to_letter(self.end_column)}{self.end_row + 1}"

    @property
    def is_singleton(self) -> bool:
        return self.cell_count == 1

    def to_line(self) -> str:
        """Text form used in format-aggregated output."""
        if not self.is_singleton:
            line = f"{self.type_token}:{self.start_address}-{self.end_address}"
            if self.format_string:
                line += f":{self.format_string}"
            return line
        value = self.value if self.value is not None else self.type_token
        if self.formula:
            value = f"{value} ={self.formula}" if value else f"={self.formula}"
        return f"{self.start_address}={value}"


class AggregatedWorksheet(BaseModel):
    """Aggregation result for one worksheet."""

    name: str
    regions: list[AggregatedRegion] = Field(default_factory=list)
    original_cell_count: int = Field(0, ge=0)
    compression_ratio: float = Field(0.0, ge=0.0)

    @property
    def covered_cell_count(self) -> int:
        return sum(region.cell_count for region in self.regions)


class Artifact(BaseModel):
    """Named byte blob handed to the caller's artifact sink."""

    name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class StepOutput(BaseModel):
    """Named outputs of a successful pipeline step."""

    compressed_text: str
    token_count: int = Field(..., ge=0)

    def merge_into(self, context: "PipelineContext") -> None:
        context.compressed_text = self.compressed_text


class FormatAggregationOutput(StepOutput):
    sheets: list[AggregatedWorksheet] = Field(default_factory=list)
    average_compression_ratio: float = Field(0.0, ge=0.0)

    def merge_into(self, context: "PipelineContext") -> None:
        super().merge_into(context)
        context.aggregated_sheets = list(self.sheets)


class InvertedIndexOutput(StepOutput):
    indexes: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Sheet name -> key -> range or reference list"
    )

    def merge_into(self, context: "PipelineContext") -> None:
        super().merge_into(context)
        context.inverted_indexes = dict(self.indexes)


class StepResult(BaseModel):
    """Outcome of a single pipeline step."""

    step_name: str
    success: bool
    elapsed_ms: float = Field(0.0, ge=0.0)
    error_message: str | None = None
    output: StepOutput | None = None


class CompressionResult(BaseModel):
    """Result of one pipeline run; ownership passes to the caller."""

    compressed_text: str = ""
    original_token_count: int = Field(0, ge=0)
    compressed_token_count: int = Field(0, ge=0)
    step_timings: dict[str, float] = Field(
        default_factory=dict, description="Step name -> elapsed milliseconds, in run order"
    )
    artifacts: list[Artifact] = Field(default_factory=list)
    success: bool = True
    failed_step: str | None = None
    error_message: str | None = None

    @property
    def compression_ratio(self) -> float:
        return compression_ratio(self.original_token_count, self.compressed_token_count)


class CompressionStrategy(Enum):
    """Caller-facing compression strategies."""

    NONE = "none"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"
    CUSTOM = "custom"


class CompressionStatistics(BaseModel):
    """Cell-level statistics of an orchestrated compression run."""

    original_cell_count: int = Field(0, ge=0)
    compressed_cell_count: int = Field(0, ge=0)
    cell_reduction_ratio: float = Field(0.0, ge=0.0, le=1.0)
    sheets_processed: int = Field(0, ge=0)
    processing_time_ms: float = Field(0.0, ge=0.0)
    memory_used_bytes: int = Field(0, ge=0)


class CompressionReport(BaseModel):
    """Everything returned to a token-budget caller."""

    result: CompressionResult
    strategy: CompressionStrategy
    warnings: list[str] = Field(default_factory=list)
    retried: bool = False
    statistics: CompressionStatistics = Field(default_factory=CompressionStatistics)

    @property
    def compressed_text(self) -> str:
        return self.result.compressed_text

    @property
    def token_count(self) -> int:
        return self.result.compressed_token_count

    @property
    def compression_ratio(self) -> float:
        return self.result.compression_ratio
