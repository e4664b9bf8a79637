"""Tests for CompressionPipelineFactory."""

import pytest

from gridpress.compression import CompressionPipelineFactory, PipelineKind
from gridpress.core.exceptions import ValidationError
from gridpress.models import WorkbookContext, WorkbookStatistics


def workbook_with(total_cells: int, empty_percentage: float) -> WorkbookContext:
    stats = WorkbookStatistics(
        total_cells=total_cells,
        non_empty_cells=int(total_cells * (100 - empty_percentage) / 100),
        empty_percentage=empty_percentage,
    )
    return WorkbookContext(statistics=stats)


class TestSelection:
    """Test size and sparsity based pipeline selection."""

    def test_sparse_diagonal_is_lightweight(self, build_worksheet):
        sheet = build_worksheet(
            "Diagonal",
            [[1, None, None, None], [None, 2, None, None], [None, None, 3, None], [None, None, None, 4]],
        )
        workbook = WorkbookContext.from_worksheets([sheet])

        assert workbook.statistics.empty_percentage == pytest.approx(75.0)
        assert CompressionPipelineFactory.select_pipeline_kind(workbook) is PipelineKind.LIGHTWEIGHT

    @pytest.mark.parametrize(
        "total, empty, expected",
        [
            (500_000, 70.5, PipelineKind.LIGHTWEIGHT),
            (9_999, 0.0, PipelineKind.LIGHTWEIGHT),
            (10_000, 70.0, PipelineKind.STANDARD),
            (99_999, 10.0, PipelineKind.STANDARD),
            (100_000, 10.0, PipelineKind.HIGH_COMPRESSION),
        ],
    )
    def test_thresholds(self, total, empty, expected):
        kind = CompressionPipelineFactory.select_pipeline_kind(workbook_with(total, empty))
        assert kind is expected

    def test_missing_workbook(self):
        with pytest.raises(ValidationError):
            CompressionPipelineFactory.select_pipeline_kind(None)

    def test_missing_statistics(self):
        with pytest.raises(ValidationError):
            CompressionPipelineFactory.create_optimal_pipeline(WorkbookContext())


class TestPresets:
    """Test the canned pipeline shapes."""

    def test_lightweight(self):
        pipeline = CompressionPipelineFactory.create_lightweight_pipeline()
        assert pipeline.step_names == ["InvertedIndex"]
        options = pipeline.steps[0].options
        assert not options.include_formats
        assert options.range_threshold == 2

    def test_standard(self):
        pipeline = CompressionPipelineFactory.create_standard_pipeline()
        assert pipeline.step_names == ["FormatAggregation"]
        assert pipeline.steps[0].options.min_group_size == 3

    def test_high_compression(self):
        pipeline = CompressionPipelineFactory.create_high_compression_pipeline()
        assert pipeline.step_names == ["FormatAggregation", "InvertedIndex"]
        assert pipeline.steps[0].options.min_group_size == 2
        assert pipeline.steps[1].options.include_formats

    def test_optimal_for_small_workbook(self, sales_workbook):
        pipeline = CompressionPipelineFactory.create_optimal_pipeline(sales_workbook)
        assert pipeline.step_names == ["InvertedIndex"]

    @pytest.mark.parametrize("kind", list(PipelineKind))
    def test_every_kind_builds(self, kind):
        assert CompressionPipelineFactory.create_pipeline(kind).steps
