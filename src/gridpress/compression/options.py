"""Option records accepted by the compression components."""

from pydantic import BaseModel, ConfigDict, Field

from .type_recognizers import DEFAULT_RECOGNIZERS, TypeRecognizer


class FormatAggregationOptions(BaseModel):
    """Options for format-aware region aggregation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    enable_type_recognition: bool = Field(
        True, description="Fall back to value patterns when no format string matches"
    )
    min_group_size: int = Field(2, ge=1, description="Smallest component collapsed into a region")
    include_formulas: bool = Field(
        True, description="Append '=formula' text to single-cell lines"
    )
    type_recognizers: list[TypeRecognizer] = Field(
        default_factory=list, description="Replacement recognizer list; empty means the defaults"
    )

    @property
    def recognizers(self) -> tuple[TypeRecognizer, ...]:
        return tuple(self.type_recognizers) if self.type_recognizers else DEFAULT_RECOGNIZERS


class InvertedIndexOptions(BaseModel):
    """Options for the value -> addresses inverted index."""

    optimize_ranges: bool = Field(True, description="Compact contiguous runs into ranges")
    include_formats: bool = Field(True, description="Append the number format to each key")
    range_threshold: int = Field(
        3, ge=1, description="Minimum addresses per key before range compaction is attempted"
    )


class AnchorDetectionOptions(BaseModel):
    """Options for structural anchor detection."""

    min_heterogeneity_score: float = Field(
        0.7, ge=0.0, le=1.0, description="Score at which a row or column becomes an anchor"
    )
    consider_styles: bool = Field(True, description="Score bold and background variation")
    consider_number_formats: bool = Field(True, description="Score number-format variation")
    detect_multi_level_headers: bool = Field(True, description="Look for stacked header rows")
    max_header_depth: int = Field(3, ge=1, description="Rows scanned for multi-level headers")


class SkeletonExtractionOptions(BaseModel):
    """Options for skeleton extraction."""

    preserve_nearby_non_empty: bool = Field(
        True, description="Keep cells within the anchors' k-neighborhood"
    )
    preserve_formulas: bool = Field(True, description="Keep every formula cell")
    preserve_formatted_cells: bool = Field(
        True, description="Keep bold, merged, bordered or shaded cells"
    )
    min_compression_ratio: float = Field(
        0.7, ge=0.0, le=1.0, description="Ratio below which a warning is reported"
    )

