"""Compression pipeline: an ordered list of steps over one shared context."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from ..core.exceptions import PipelineError
from ..models.compression import AggregatedWorksheet, Artifact, CompressionResult
from ..models.skeleton import SkeletonWorkbook
from ..models.workbook import WorkbookContext
from ..utils.cancellation import raise_if_cancelled
from ..utils.text import estimate_tokens
from .options import FormatAggregationOptions, InvertedIndexOptions
from .steps import FormatAggregationStep, InvertedIndexStep, PipelineStep
from .vanilla import VanillaSerializer

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """State shared by the steps of one pipeline run."""

    workbook: WorkbookContext
    skeleton: SkeletonWorkbook | None = None
    aggregated_sheets: list[AggregatedWorksheet] = field(default_factory=list)
    inverted_indexes: dict[str, dict[str, Any]] = field(default_factory=dict)
    compressed_text: str = ""
    artifacts: list[Artifact] = field(default_factory=list)
    cancel_event: asyncio.Event | None = None
    _skeleton_workbook: WorkbookContext | None = field(default=None, init=False, repr=False)

    @property
    def source_workbook(self) -> WorkbookContext:
        """Workbook the steps operate on: the skeleton if present, else the original."""
        if self.skeleton is None:
            return self.workbook
        if self._skeleton_workbook is None:
            self._skeleton_workbook = self.skeleton.to_workbook_context()
        return self._skeleton_workbook


class CompressionPipeline:
    """Runs its steps in order, halting at the first failure."""

    def __init__(self, steps: list[PipelineStep], serializer: VanillaSerializer | None = None):
        if not steps:
            raise PipelineError("Pipeline must have at least one step")
        self.steps = list(steps)
        self.serializer = serializer or VanillaSerializer()

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]

    async def execute(
        self,
        workbook: WorkbookContext,
        skeleton: SkeletonWorkbook | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> CompressionResult:
        """
        Compress a workbook.

        Args:
            workbook: The original workbook; its vanilla rendering is the baseline
            skeleton: Optional pruned workbook the steps should operate on
            cancel_event: Set to stop the run between steps or worksheets

        Returns:
            CompressionResult. A failed step leaves ``success`` False and keeps the
            text and timings of the steps that ran before it.
        """
        baseline = self.serializer.serialize(workbook)
        context = PipelineContext(
            workbook=workbook,
            skeleton=skeleton,
            compressed_text=baseline,
            cancel_event=cancel_event,
        )
        result = CompressionResult(original_token_count=estimate_tokens(baseline))

        logger.info(f"Running pipeline {' -> '.join(self.step_names)}")

        for step in self.steps:
            raise_if_cancelled(cancel_event, f"step {step.name}")
            step_result = await step.execute(context)
            result.step_timings[step.name] = step_result.elapsed_ms

            if not step_result.success:
                logger.error(f"Pipeline halted at step {step.name}: {step_result.error_message}")
                result.success = False
                result.failed_step = step.name
                result.error_message = step_result.error_message
                break

            if step_result.output is not None:
                step_result.output.merge_into(context)

        result.compressed_text = context.compressed_text
        result.compressed_token_count = estimate_tokens(context.compressed_text)
        result.artifacts = list(context.artifacts)

        logger.info(
            f"Pipeline produced {result.compressed_token_count} tokens "
            f"from {result.original_token_count} (ratio {result.compression_ratio:.2f})"
        )
        return result


class PipelineBuilder:
    """Fluent builder for CompressionPipeline."""

    def __init__(self):
        self._steps: list[PipelineStep] = []

    def add_step(self, step: PipelineStep) -> "PipelineBuilder":
        self._steps.append(step)
        return self

    def add_format_aggregation(
        self, options: FormatAggregationOptions | None = None
    ) -> "PipelineBuilder":
        return self.add_step(FormatAggregationStep(options))

    def add_inverted_index(self, options: InvertedIndexOptions | None = None) -> "PipelineBuilder":
        return self.add_step(InvertedIndexStep(options))

    def build(self) -> CompressionPipeline:
        return CompressionPipeline(self._steps)
