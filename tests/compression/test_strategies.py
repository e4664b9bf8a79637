"""Tests for strategy resolution and the WorkbookCompressor."""

import asyncio

import pytest
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from gridpress.compression import (
    AnchorDetectionOptions,
    FormatAggregationOptions,
    InvertedIndexOptions,
    SkeletonExtractionOptions,
    VanillaSerializationOptions,
    VanillaSerializer,
)
from gridpress.compression.strategies import (
    CompressionRequest,
    CustomStrategyConfig,
    WorkbookCompressor,
    aggressive_settings,
    balanced_settings,
    resolve_settings,
)
from gridpress.compression.type_recognizers import TypeRecognizer
from gridpress.core.exceptions import CompressionCancelledError, ConfigurationError
from gridpress.models import CellData, CompressionStrategy, WorkbookContext
from gridpress.telemetry import MetricsCollector
from gridpress.utils.text import estimate_tokens


class ExplodingRecognizer(TypeRecognizer):
    """Recognizer that fails on every lookup."""

    type_name = "Exploding"
    type_token = "Exploding"

    def can_recognize(self, value, format_string):
        raise RuntimeError("boom")


@pytest.fixture
def compressor():
    return WorkbookCompressor()


class TestResolveSettings:
    """Test strategy -> settings mapping."""

    def test_none_is_vanilla(self):
        assert resolve_settings(CompressionRequest(strategy=CompressionStrategy.NONE)) is None

    def test_balanced(self):
        settings = resolve_settings(CompressionRequest(include_formatting=False))

        assert settings.anchor_options.min_heterogeneity_score == pytest.approx(0.6)
        assert not settings.anchor_options.consider_styles
        assert not settings.skeleton_options.preserve_formatted_cells
        assert settings.skeleton_options.preserve_formulas
        assert settings.skeleton_options.min_compression_ratio == pytest.approx(0.5)
        assert settings.aggregation_options.min_group_size == 3
        assert settings.k == 2
        assert settings.build_pipeline().step_names == ["FormatAggregation"]

    def test_aggressive(self):
        settings = resolve_settings(CompressionRequest(strategy=CompressionStrategy.AGGRESSIVE))

        assert settings.k == 0
        assert settings.anchor_options.min_heterogeneity_score == pytest.approx(0.8)
        assert not settings.skeleton_options.preserve_nearby_non_empty
        assert settings.build_pipeline().step_names == ["FormatAggregation", "InvertedIndex"]

    def test_custom_takes_formula_flag(self):
        request = CompressionRequest(
            strategy=CompressionStrategy.CUSTOM,
            include_formulas=False,
            custom=CustomStrategyConfig(),
        )

        settings = resolve_settings(request)

        assert not settings.aggregation_options.include_formulas
        assert request.custom.aggregation_options.include_formulas
        assert settings.notice == "Aggressive compression applied - some context may be lost"

    def test_custom_without_config(self):
        with pytest.raises(ConfigurationError):
            resolve_settings(CompressionRequest(strategy=CompressionStrategy.CUSTOM))

    def test_custom(self):
        custom = CustomStrategyConfig(
            anchor_options=AnchorDetectionOptions(min_heterogeneity_score=0.5),
            k=1,
            inverted_index_options=InvertedIndexOptions(),
        )

        settings = resolve_settings(
            CompressionRequest(strategy=CompressionStrategy.CUSTOM, custom=custom)
        )

        assert settings.k == 1
        assert settings.anchor_options.min_heterogeneity_score == pytest.approx(0.5)
        assert settings.low_ratio_warning is None
        assert settings.build_pipeline().step_names == ["FormatAggregation", "InvertedIndex"]


class TestStricter:
    """Test the stricter retry settings."""

    def test_balanced_stricter(self):
        stricter = balanced_settings().stricter()

        assert stricter.anchor_options.min_heterogeneity_score == pytest.approx(0.7)
        assert stricter.aggregation_options.min_group_size == 2
        assert not stricter.skeleton_options.preserve_nearby_non_empty
        assert stricter.k == 0

    def test_floors_and_caps(self):
        settings = aggressive_settings()
        settings = settings.stricter().stricter().stricter()

        assert settings.anchor_options.min_heterogeneity_score == pytest.approx(1.0)
        assert settings.aggregation_options.min_group_size == 2

    def test_original_untouched(self):
        settings = balanced_settings()
        settings.stricter()
        assert settings.anchor_options.min_heterogeneity_score == pytest.approx(0.6)
        assert settings.skeleton_options.preserve_nearby_non_empty


class TestCompress:
    """Test end-to-end compression reports."""

    @pytest.mark.asyncio
    async def test_balanced_low_ratio_warning(self, compressor, sales_workbook):
        report = await compressor.compress(sales_workbook)

        assert report.strategy is CompressionStrategy.BALANCED
        assert report.result.success
        assert report.warnings == [
            "Compression ratio 20.0% for sheet 'Sales' is below the minimum of 50.0%",
            "Low compression ratio achieved: 20.0%",
        ]
        assert not report.retried
        assert report.statistics.original_cell_count == 15
        assert report.statistics.compressed_cell_count == 12
        assert report.statistics.cell_reduction_ratio == pytest.approx(0.2)
        assert report.statistics.sheets_processed == 1
        assert report.statistics.processing_time_ms > 0

    @pytest.mark.asyncio
    async def test_none_strategy_is_vanilla(self, compressor, sales_workbook):
        request = CompressionRequest(strategy=CompressionStrategy.NONE)

        report = await compressor.compress(sales_workbook, request)

        expected = VanillaSerializer(VanillaSerializationOptions(include_styles=True)).serialize(
            sales_workbook
        )
        assert report.compressed_text == expected
        assert "[bold]" in report.compressed_text
        assert report.result.original_token_count == report.token_count == estimate_tokens(expected)
        assert report.compression_ratio == pytest.approx(1.0)
        assert report.warnings == []
        assert report.statistics.compressed_cell_count == 15

    @pytest.mark.asyncio
    async def test_aggressive_notice(self, compressor, sales_workbook):
        request = CompressionRequest(strategy=CompressionStrategy.AGGRESSIVE)

        report = await compressor.compress(sales_workbook, request)

        assert "Aggressive compression applied - some context may be lost" in report.warnings
        assert list(report.result.step_timings) == ["FormatAggregation", "InvertedIndex"]

    @pytest.mark.asyncio
    async def test_custom_without_config_is_fatal(self, compressor, sales_workbook):
        request = CompressionRequest(strategy=CompressionStrategy.CUSTOM)

        with pytest.raises(ConfigurationError):
            await compressor.compress(sales_workbook, request)

    @pytest.mark.asyncio
    async def test_budget_exceeded_retries_once(self, compressor, sales_workbook):
        request = CompressionRequest(target_token_limit=1)

        report = await compressor.compress(sales_workbook, request)

        assert report.retried
        assert report.warnings[0].startswith("Compressed content (")
        assert report.warnings[0].endswith("exceeds target limit (1 tokens)")
        assert report.warnings[-1] == (
            "Compressed content still exceeds target limit after stricter retry "
            f"({report.token_count} tokens > 1 tokens)"
        )

    @pytest.mark.asyncio
    async def test_retry_keeps_smaller_result(self, compressor, sales_workbook):
        first = await compressor.compress(sales_workbook)
        retried = await compressor.compress(
            sales_workbook, CompressionRequest(target_token_limit=1)
        )

        assert retried.token_count <= first.token_count
        assert retried.statistics.compressed_cell_count == 6

    @pytest.mark.asyncio
    async def test_within_budget_no_retry(self, compressor, sales_workbook):
        report = await compressor.compress(
            sales_workbook, CompressionRequest(target_token_limit=100_000)
        )

        assert not report.retried
        assert not any("target limit" in warning for warning in report.warnings)

    @pytest.mark.asyncio
    async def test_none_strategy_retries_with_balanced(self, compressor, sales_workbook):
        request = CompressionRequest(strategy=CompressionStrategy.NONE, target_token_limit=1)

        report = await compressor.compress(sales_workbook, request)

        assert report.retried
        assert report.result.step_timings
        assert report.token_count < report.result.original_token_count

    @pytest.mark.asyncio
    async def test_step_failure_becomes_warning(self, compressor, sales_workbook):
        custom = CustomStrategyConfig(
            aggregation_options=FormatAggregationOptions(type_recognizers=[ExplodingRecognizer()]),
            skeleton_options=SkeletonExtractionOptions(min_compression_ratio=0.0),
        )
        request = CompressionRequest(strategy=CompressionStrategy.CUSTOM, custom=custom)

        report = await compressor.compress(sales_workbook, request)

        assert not report.result.success
        assert report.result.failed_step == "FormatAggregation"
        assert report.warnings == ["Step FormatAggregation failed: boom"]

    @pytest.mark.asyncio
    async def test_skeleton_ratio_warning_reported(self, compressor, sales_workbook):
        custom = CustomStrategyConfig(
            skeleton_options=SkeletonExtractionOptions(min_compression_ratio=0.99)
        )
        request = CompressionRequest(strategy=CompressionStrategy.CUSTOM, custom=custom)

        report = await compressor.compress(sales_workbook, request)

        assert report.result.success
        assert any(
            warning.startswith("Compression ratio ")
            and warning.endswith("for sheet 'Sales' is below the minimum of 99.0%")
            for warning in report.warnings
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "request_",
        [
            CompressionRequest(),
            CompressionRequest(strategy=CompressionStrategy.CUSTOM, custom=CustomStrategyConfig()),
        ],
    )
    async def test_formula_text_in_output(self, compressor, sales_sheet, request_):
        sales_sheet.set_cell(CellData(row=5, column=2, formula="SUM(C2:C5)"))
        workbook = WorkbookContext.from_worksheets([sales_sheet])

        report = await compressor.compress(workbook, request_)

        assert "=SUM(C2:C5)" in report.compressed_text

    @pytest.mark.asyncio
    async def test_formula_text_omitted(self, compressor, sales_sheet):
        sales_sheet.set_cell(CellData(row=5, column=2, formula="SUM(C2:C5)"))
        workbook = WorkbookContext.from_worksheets([sales_sheet])

        report = await compressor.compress(workbook, CompressionRequest(include_formulas=False))

        assert "SUM(" not in report.compressed_text

    @pytest.mark.asyncio
    async def test_deterministic(self, compressor, sales_workbook):
        first = await compressor.compress(sales_workbook)
        second = await compressor.compress(sales_workbook)

        assert first.compressed_text == second.compressed_text
        assert first.warnings == second.warnings

    @pytest.mark.asyncio
    async def test_cancellation(self, compressor, sales_workbook):
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(CompressionCancelledError):
            await compressor.compress(sales_workbook, cancel_event=cancel_event)

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, sales_workbook):
        reader = InMemoryMetricReader()
        metrics = MetricsCollector(reader=reader)
        compressor = WorkbookCompressor(metrics=metrics)

        await compressor.compress(sales_workbook)

        data = reader.get_metrics_data()
        names = {
            metric.name
            for resource in data.resource_metrics
            for scope in resource.scope_metrics
            for metric in scope.metrics
        }
        assert "gridpress.workbooks_compressed" in names
        assert "gridpress.time.anchor_detection" in names
        assert "gridpress.time.pipeline" in names
        metrics.shutdown()
