"""Canned pipelines and size-based pipeline selection."""

import logging
from enum import Enum

from ..core.constants import PIPELINE_SELECTION
from ..core.exceptions import ValidationError
from ..models.workbook import WorkbookContext
from .options import FormatAggregationOptions, InvertedIndexOptions
from .pipeline import CompressionPipeline, PipelineBuilder

logger = logging.getLogger(__name__)


class PipelineKind(Enum):
    """Canned pipeline presets."""

    LIGHTWEIGHT = "lightweight"
    STANDARD = "standard"
    HIGH_COMPRESSION = "high_compression"


class CompressionPipelineFactory:
    """Builds the preset pipelines and picks one for a workbook."""

    @staticmethod
    def create_lightweight_pipeline() -> CompressionPipeline:
        """Inverted index only; suited to sparse sheets."""
        return (
            PipelineBuilder()
            .add_inverted_index(
                InvertedIndexOptions(
                    optimize_ranges=True,
                    include_formats=False,
                    range_threshold=PIPELINE_SELECTION.LIGHTWEIGHT_RANGE_THRESHOLD,
                )
            )
            .build()
        )

    @staticmethod
    def create_standard_pipeline() -> CompressionPipeline:
        """Format aggregation only; suited to structured, medium-sized sheets."""
        return (
            PipelineBuilder()
            .add_format_aggregation(
                FormatAggregationOptions(
                    enable_type_recognition=True,
                    min_group_size=PIPELINE_SELECTION.STANDARD_MIN_GROUP_SIZE,
                )
            )
            .build()
        )

    @staticmethod
    def create_high_compression_pipeline() -> CompressionPipeline:
        """Format aggregation followed by the inverted index; for large workbooks."""
        return (
            PipelineBuilder()
            .add_format_aggregation(
                FormatAggregationOptions(
                    enable_type_recognition=True,
                    min_group_size=PIPELINE_SELECTION.HIGH_MIN_GROUP_SIZE,
                )
            )
            .add_inverted_index(
                InvertedIndexOptions(
                    optimize_ranges=True,
                    include_formats=True,
                    range_threshold=PIPELINE_SELECTION.HIGH_RANGE_THRESHOLD,
                )
            )
            .build()
        )

    @staticmethod
    def select_pipeline_kind(workbook: WorkbookContext | None) -> PipelineKind:
        """Classify a workbook by sparsity and size."""
        if workbook is None:
            raise ValidationError("A workbook is required to select a pipeline")
        stats = workbook.statistics
        if stats is None:
            raise ValidationError("Workbook statistics are required to select a pipeline")

        if stats.empty_percentage > PIPELINE_SELECTION.SPARSE_EMPTY_PERCENTAGE:
            return PipelineKind.LIGHTWEIGHT
        if stats.total_cells < PIPELINE_SELECTION.SMALL_WORKBOOK_CELLS:
            return PipelineKind.LIGHTWEIGHT
        if stats.total_cells < PIPELINE_SELECTION.MEDIUM_WORKBOOK_CELLS:
            return PipelineKind.STANDARD
        return PipelineKind.HIGH_COMPRESSION

    @classmethod
    def create_pipeline(cls, kind: PipelineKind) -> CompressionPipeline:
        builders = {
            PipelineKind.LIGHTWEIGHT: cls.create_lightweight_pipeline,
            PipelineKind.STANDARD: cls.create_standard_pipeline,
            PipelineKind.HIGH_COMPRESSION: cls.create_high_compression_pipeline,
        }
        return builders[kind]()

    @classmethod
    def create_optimal_pipeline(cls, workbook: WorkbookContext | None) -> CompressionPipeline:
        kind = cls.select_pipeline_kind(workbook)
        logger.info(f"Selected {kind.value} pipeline")
        return cls.create_pipeline(kind)
