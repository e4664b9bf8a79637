"""Pipeline steps."""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..core.exceptions import CompressionCancelledError
from ..models.compression import (
    AggregatedWorksheet,
    Artifact,
    FormatAggregationOutput,
    InvertedIndexOutput,
    StepOutput,
    StepResult,
)
from ..models.workbook import WorksheetContext
from ..utils.cancellation import raise_if_cancelled
from ..utils.logging_context import SheetContext, StepContext
from ..utils.text import estimate_tokens
from .format_aggregator import FormatAwareAggregator
from .inverted_index import IndexEntry, InvertedIndexTranslator, to_json
from .options import FormatAggregationOptions, InvertedIndexOptions

if TYPE_CHECKING:
    from .pipeline import PipelineContext

JSON_MIME_TYPE = "application/json"


class PipelineStep(ABC):
    """
    Abstract base class for compression pipeline steps.

    A step reads the pipeline context, produces compressed text plus any
    artifacts, and reports success or failure with its elapsed time. Errors
    raised by ``run`` are converted into a failed StepResult; cancellation is
    the exception and always propagates.
    """

    name: str = "Step"

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def run(self, context: "PipelineContext") -> StepOutput:
        """Do the step's work and return its outputs."""
        pass

    async def execute(self, context: "PipelineContext") -> StepResult:
        """Run the step, timing it and capturing failures."""
        start = time.perf_counter()
        with StepContext(self.name):
            try:
                output = await self.run(context)
            except CompressionCancelledError:
                raise
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                self.logger.error(f"Step {self.name} failed: {e}")
                return StepResult(
                    step_name=self.name,
                    success=False,
                    elapsed_ms=elapsed,
                    error_message=str(e),
                )

        elapsed = (time.perf_counter() - start) * 1000
        self.logger.debug(f"Step {self.name} finished in {elapsed:.1f}ms")
        return StepResult(step_name=self.name, success=True, elapsed_ms=elapsed, output=output)


class FormatAggregationStep(PipelineStep):
    """Collapses same-typed regions of every worksheet."""

    name = "FormatAggregation"

    def __init__(self, options: FormatAggregationOptions | None = None):
        super().__init__()
        self.options = options or FormatAggregationOptions()
        self.aggregator = FormatAwareAggregator(self.options)

    async def run(self, context: "PipelineContext") -> FormatAggregationOutput:
        sheets: list[AggregatedWorksheet] = []
        for worksheet in context.source_workbook.worksheets:
            raise_if_cancelled(context.cancel_event, f"aggregating '{worksheet.name}'")
            with SheetContext(worksheet.name):
                sheets.append(self.aggregator.aggregate(worksheet))

        text = "\n\n".join(_aggregated_block(sheet) for sheet in sheets)
        ratios = [sheet.compression_ratio for sheet in sheets]

        context.artifacts.append(
            Artifact(
                name="format_aggregated.json",
                mime_type=JSON_MIME_TYPE,
                data=json.dumps(
                    {sheet.name: [region.to_line() for region in sheet.regions] for sheet in sheets},
                    ensure_ascii=False,
                ).encode("utf-8"),
            )
        )

        return FormatAggregationOutput(
            compressed_text=text,
            token_count=estimate_tokens(text),
            sheets=sheets,
            average_compression_ratio=sum(ratios) / len(ratios) if ratios else 0.0,
        )


class InvertedIndexStep(PipelineStep):
    """Builds a value -> addresses index per worksheet, in parallel."""

    name = "InvertedIndex"

    def __init__(self, options: InvertedIndexOptions | None = None):
        super().__init__()
        self.options = options or InvertedIndexOptions()
        self.translator = InvertedIndexTranslator(self.options)

    async def run(self, context: "PipelineContext") -> InvertedIndexOutput:
        worksheets = context.source_workbook.worksheets
        indexes = await asyncio.gather(
            *(self._index_worksheet(worksheet, context) for worksheet in worksheets),
            return_exceptions=True,
        )
        for index in indexes:
            if isinstance(index, BaseException):
                raise index

        by_sheet = {worksheet.name: index for worksheet, index in zip(worksheets, indexes)}
        text = "\n\n".join(
            f"## {worksheet.name}\n{to_json(index)}" for worksheet, index in zip(worksheets, indexes)
        )

        context.artifacts.append(
            Artifact(
                name="inverted_index.json",
                mime_type=JSON_MIME_TYPE,
                data=json.dumps(by_sheet, ensure_ascii=False).encode("utf-8"),
            )
        )

        return InvertedIndexOutput(
            compressed_text=text, token_count=estimate_tokens(text), indexes=by_sheet
        )

    async def _index_worksheet(
        self, worksheet: WorksheetContext, context: "PipelineContext"
    ) -> dict[str, IndexEntry]:
        raise_if_cancelled(context.cancel_event, f"indexing '{worksheet.name}'")
        return await asyncio.to_thread(self.translator.build_index, worksheet)


def _aggregated_block(sheet: AggregatedWorksheet) -> str:
    lines = [f"## {sheet.name}"]
    lines.extend(region.to_line() for region in sheet.regions)
    return "\n".join(lines)
