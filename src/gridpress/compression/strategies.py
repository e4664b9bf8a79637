"""Strategy selection and token-budget orchestration.

A CompressionStrategy is turned into concrete anchor, skeleton and pipeline
settings. WorkbookCompressor runs anchors -> skeleton -> pipeline for those
settings and, when the result is over the caller's token budget, retries once
with stricter settings and keeps whichever attempt is smaller.
"""

import asyncio
import logging
import os
import time
from contextlib import nullcontext
from dataclasses import dataclass, replace

import psutil
from pydantic import BaseModel, ConfigDict, Field

from ..core.constants import STRATEGY
from ..core.exceptions import ConfigurationError, UnsupportedStrategyError
from ..detectors import SkeletonExtractor, StructuralAnchorDetector
from ..models.compression import (
    CompressionReport,
    CompressionResult,
    CompressionStatistics,
    CompressionStrategy,
)
from ..models.skeleton import SkeletonWorkbook
from ..models.workbook import WorkbookContext
from ..telemetry import MetricsCollector
from ..utils.logging_context import FileContext, OperationContext
from ..utils.text import estimate_tokens
from .options import (
    AnchorDetectionOptions,
    FormatAggregationOptions,
    InvertedIndexOptions,
    SkeletonExtractionOptions,
)
from .pipeline import CompressionPipeline, PipelineBuilder
from .vanilla import VanillaSerializer

logger = logging.getLogger(__name__)


class CustomStrategyConfig(BaseModel):
    """Caller-supplied settings for the custom strategy."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    anchor_options: AnchorDetectionOptions = Field(default_factory=AnchorDetectionOptions)
    k: int = Field(2, ge=0, description="Anchor neighborhood expansion")
    skeleton_options: SkeletonExtractionOptions = Field(default_factory=SkeletonExtractionOptions)
    aggregation_options: FormatAggregationOptions = Field(default_factory=FormatAggregationOptions)
    inverted_index_options: InvertedIndexOptions | None = Field(
        None, description="Appends an inverted-index step when set"
    )


class CompressionRequest(BaseModel):
    """What the caller asks for."""

    strategy: CompressionStrategy = Field(
        CompressionStrategy.BALANCED, description="Compression strategy"
    )
    include_formatting: bool = Field(True, description="Let styles and formats shape the output")
    include_formulas: bool = Field(True, description="Keep formulas in the output")
    target_token_limit: int | None = Field(
        None, ge=1, description="Retry once with stricter settings above this many tokens"
    )
    custom: CustomStrategyConfig | None = Field(
        None, description="Required when strategy is custom"
    )


@dataclass(frozen=True)
class StrategySettings:
    """Concrete settings for one compression attempt."""

    anchor_options: AnchorDetectionOptions
    k: int
    skeleton_options: SkeletonExtractionOptions
    aggregation_options: FormatAggregationOptions
    inverted_index_options: InvertedIndexOptions | None = None
    low_ratio_warning: float | None = None
    notice: str | None = None

    def stricter(self) -> "StrategySettings":
        """Smaller groups, a higher anchor threshold, no nearby cells and k=0."""
        threshold = min(
            1.0,
            round(self.anchor_options.min_heterogeneity_score + STRATEGY.RETRY_THRESHOLD_STEP, 6),
        )
        min_group = max(
            STRATEGY.RETRY_MIN_GROUP_SIZE_FLOOR, self.aggregation_options.min_group_size - 1
        )
        return replace(
            self,
            anchor_options=self.anchor_options.model_copy(
                update={"min_heterogeneity_score": threshold}
            ),
            k=0,
            skeleton_options=self.skeleton_options.model_copy(
                update={"preserve_nearby_non_empty": False}
            ),
            aggregation_options=self.aggregation_options.model_copy(
                update={"min_group_size": min_group}
            ),
        )

    def build_pipeline(self) -> CompressionPipeline:
        builder = PipelineBuilder().add_format_aggregation(self.aggregation_options)
        if self.inverted_index_options is not None:
            builder.add_inverted_index(self.inverted_index_options)
        return builder.build()


def balanced_settings(
    include_formatting: bool = True,
    include_formulas: bool = True,
    k: int = STRATEGY.BALANCED_NEIGHBORHOOD,
    max_header_depth: int = 3,
) -> StrategySettings:
    return StrategySettings(
        anchor_options=AnchorDetectionOptions(
            min_heterogeneity_score=STRATEGY.BALANCED_ANCHOR_THRESHOLD,
            consider_styles=include_formatting,
            consider_number_formats=include_formatting,
            detect_multi_level_headers=True,
            max_header_depth=max_header_depth,
        ),
        k=k,
        skeleton_options=SkeletonExtractionOptions(
            preserve_nearby_non_empty=True,
            preserve_formulas=include_formulas,
            preserve_formatted_cells=include_formatting,
            min_compression_ratio=STRATEGY.BALANCED_MIN_SKELETON_RATIO,
        ),
        aggregation_options=FormatAggregationOptions(
            min_group_size=STRATEGY.BALANCED_MIN_GROUP_SIZE, include_formulas=include_formulas
        ),
        low_ratio_warning=STRATEGY.BALANCED_LOW_RATIO_WARNING,
    )


def aggressive_settings(include_formulas: bool = True) -> StrategySettings:
    return StrategySettings(
        anchor_options=AnchorDetectionOptions(
            min_heterogeneity_score=STRATEGY.AGGRESSIVE_ANCHOR_THRESHOLD,
            consider_styles=False,
            consider_number_formats=False,
            detect_multi_level_headers=False,
        ),
        k=STRATEGY.AGGRESSIVE_NEIGHBORHOOD,
        skeleton_options=SkeletonExtractionOptions(
            preserve_nearby_non_empty=False,
            preserve_formulas=False,
            preserve_formatted_cells=False,
            min_compression_ratio=STRATEGY.AGGRESSIVE_MIN_SKELETON_RATIO,
        ),
        aggregation_options=FormatAggregationOptions(
            min_group_size=STRATEGY.AGGRESSIVE_MIN_GROUP_SIZE, include_formulas=include_formulas
        ),
        inverted_index_options=InvertedIndexOptions(
            include_formats=False, range_threshold=STRATEGY.AGGRESSIVE_RANGE_THRESHOLD
        ),
        notice="Aggressive compression applied - some context may be lost",
    )


def resolve_settings(
    request: CompressionRequest,
    k: int = STRATEGY.BALANCED_NEIGHBORHOOD,
    max_header_depth: int = 3,
) -> StrategySettings | None:
    """Concrete settings for a request; None means vanilla serialization.

    ``k`` and ``max_header_depth`` tune the balanced strategy only.
    """
    strategy = request.strategy

    if strategy is CompressionStrategy.NONE:
        return None
    if strategy is CompressionStrategy.BALANCED:
        return balanced_settings(
            request.include_formatting, request.include_formulas, k, max_header_depth
        )
    if strategy is CompressionStrategy.AGGRESSIVE:
        return aggressive_settings(request.include_formulas)
    if strategy is CompressionStrategy.CUSTOM:
        if request.custom is None:
            raise ConfigurationError("Custom strategy requires a CustomStrategyConfig")
        custom = request.custom
        return StrategySettings(
            anchor_options=custom.anchor_options,
            k=custom.k,
            skeleton_options=custom.skeleton_options,
            aggregation_options=custom.aggregation_options.model_copy(
                update={"include_formulas": request.include_formulas}
            ),
            inverted_index_options=custom.inverted_index_options,
        )

    raise UnsupportedStrategyError(f"Unsupported compression strategy: {strategy!r}")


@dataclass
class _Attempt:
    result: CompressionResult
    skeleton: SkeletonWorkbook | None
    warnings: list[str]


class WorkbookCompressor:
    """Runs a compression request end to end, honouring the token budget."""

    def __init__(
        self,
        detector: StructuralAnchorDetector | None = None,
        extractor: SkeletonExtractor | None = None,
        serializer: VanillaSerializer | None = None,
        metrics: MetricsCollector | None = None,
        neighborhood: int = STRATEGY.BALANCED_NEIGHBORHOOD,
        max_header_depth: int = 3,
    ):
        self.detector = detector or StructuralAnchorDetector()
        self.extractor = extractor or SkeletonExtractor()
        self.serializer = serializer or VanillaSerializer()
        self.metrics = metrics
        self.neighborhood = neighborhood
        self.max_header_depth = max_header_depth

    async def compress(
        self,
        workbook: WorkbookContext,
        request: CompressionRequest | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> CompressionReport:
        """
        Compress a workbook according to a request.

        Args:
            workbook: Loaded workbook
            request: Strategy, flags and optional token budget
            cancel_event: Set to abort between worksheets or steps

        Returns:
            CompressionReport with the kept result and all warnings

        Raises:
            ConfigurationError: If the custom strategy has no configuration
            CompressionCancelledError: If ``cancel_event`` is set during the run
        """
        request = request or CompressionRequest()
        settings = resolve_settings(request, self.neighborhood, self.max_header_depth)

        process = psutil.Process(os.getpid())
        memory_before = process.memory_info().rss
        start = time.perf_counter()

        with FileContext(workbook.file_path or "<memory>"):
            logger.info(
                f"Compressing {len(workbook.worksheets)} sheets "
                f"with strategy {request.strategy.value}"
            )
            attempt = await self._attempt(workbook, request, settings, cancel_event)
            budget_warnings: list[str] = []
            retried = False

            limit = request.target_token_limit
            if limit is not None and attempt.result.compressed_token_count > limit:
                message = (
                    f"Compressed content ({attempt.result.compressed_token_count} tokens) "
                    f"exceeds target limit ({limit} tokens)"
                )
                logger.warning(f"{message}; retrying with stricter settings")
                budget_warnings.append(message)

                base = settings or balanced_settings(
                    request.include_formatting,
                    request.include_formulas,
                    self.neighborhood,
                    self.max_header_depth,
                )
                retry = await self._attempt(workbook, request, base.stricter(), cancel_event)
                retried = True

                if retry.result.compressed_token_count <= attempt.result.compressed_token_count:
                    attempt = retry

                tokens = attempt.result.compressed_token_count
                if tokens > limit:
                    message = (
                        "Compressed content still exceeds target limit after stricter retry "
                        f"({tokens} tokens > {limit} tokens)"
                    )
                    logger.warning(message)
                    budget_warnings.append(message)

        elapsed_ms = (time.perf_counter() - start) * 1000
        memory_used = max(0, process.memory_info().rss - memory_before)
        report = CompressionReport(
            result=attempt.result,
            strategy=request.strategy,
            warnings=attempt.warnings + budget_warnings,
            retried=retried,
            statistics=_statistics(workbook, attempt.skeleton, elapsed_ms, memory_used),
        )

        if self.metrics is not None:
            self.metrics.record_compression(
                strategy=request.strategy.value,
                compression_ratio=report.compression_ratio,
                compressed_tokens=report.token_count,
                step_timings=report.result.step_timings,
                failed_step=report.result.failed_step,
                retried=retried,
            )

        logger.info(
            f"Compressed to {report.token_count} tokens "
            f"(ratio {report.compression_ratio:.2f}, {len(report.warnings)} warnings)"
        )
        return report

    async def _attempt(
        self,
        workbook: WorkbookContext,
        request: CompressionRequest,
        settings: StrategySettings | None,
        cancel_event: asyncio.Event | None,
    ) -> _Attempt:
        if settings is None:
            return _Attempt(self._vanilla(workbook, request), None, [])

        warnings: list[str] = []
        with OperationContext("anchor_detection"), self._timed("anchor_detection"):
            anchors = self.detector.find_workbook_anchors(
                workbook, settings.k, settings.anchor_options, cancel_event
            )
        with OperationContext("skeleton_extraction"), self._timed("skeleton_extraction"):
            skeleton = self.extractor.extract_workbook(
                workbook, anchors, settings.skeleton_options, cancel_event
            )
        warnings.extend(skeleton.warnings)

        ratio = skeleton.global_stats.compression_ratio
        if settings.low_ratio_warning is not None and ratio < settings.low_ratio_warning:
            warnings.append(f"Low compression ratio achieved: {ratio:.1%}")
        if settings.notice:
            warnings.append(settings.notice)

        with OperationContext("pipeline"), self._timed("pipeline"):
            result = await settings.build_pipeline().execute(workbook, skeleton, cancel_event)
        if not result.success:
            warnings.append(f"Step {result.failed_step} failed: {result.error_message}")

        return _Attempt(result, skeleton, warnings)

    def _vanilla(self, workbook: WorkbookContext, request: CompressionRequest) -> CompressionResult:
        options = self.serializer.options.model_copy(
            update={
                "include_number_formats": request.include_formatting,
                "include_formulas": request.include_formulas,
                "include_styles": request.include_formatting,
            }
        )
        text = self.serializer.serialize(workbook, options)
        tokens = estimate_tokens(text)
        return CompressionResult(
            compressed_text=text, original_token_count=tokens, compressed_token_count=tokens
        )

    def _timed(self, operation: str):
        if self.metrics is None:
            return nullcontext()
        return self.metrics.measure_time(operation)


def _statistics(
    workbook: WorkbookContext,
    skeleton: SkeletonWorkbook | None,
    elapsed_ms: float,
    memory_used: int,
) -> CompressionStatistics:
    original = sum(worksheet.dimensions.non_empty_cells for worksheet in workbook.worksheets)
    compressed = skeleton.global_stats.skeleton_cell_count if skeleton is not None else original
    return CompressionStatistics(
        original_cell_count=original,
        compressed_cell_count=compressed,
        cell_reduction_ratio=1.0 - compressed / original if original > 0 else 0.0,
        sheets_processed=len(workbook.worksheets),
        processing_time_ms=elapsed_ms,
        memory_used_bytes=memory_used,
    )
