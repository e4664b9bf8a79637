"""Tests for the OpenTelemetry metrics collector."""

import pytest
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from gridpress.telemetry import MetricsCollector, get_metrics_collector


@pytest.fixture
def reader():
    return InMemoryMetricReader()


@pytest.fixture
def collector(reader):
    collector = MetricsCollector(reader=reader)
    yield collector
    collector.shutdown()


def collect(reader: InMemoryMetricReader) -> dict:
    """Metric name -> data points."""
    data = reader.get_metrics_data()
    return {
        metric.name: list(metric.data.data_points)
        for resource in data.resource_metrics
        for scope in resource.scope_metrics
        for metric in scope.metrics
    }


def test_record_compression(collector, reader):
    collector.record_compression(
        strategy="balanced",
        compression_ratio=2.5,
        compressed_tokens=120,
        step_timings={"FormatAggregation": 3.0, "InvertedIndex": 1.5},
    )

    metrics = collect(reader)

    compressed = metrics["gridpress.workbooks_compressed"]
    assert compressed[0].value == 1
    assert compressed[0].attributes == {"strategy": "balanced"}

    ratio = metrics["gridpress.compression_ratio"][0]
    assert ratio.sum == pytest.approx(2.5)

    steps = {point.attributes["step"] for point in metrics["gridpress.step_duration"]}
    assert steps == {"FormatAggregation", "InvertedIndex"}

    assert "gridpress.step_failures" not in metrics
    assert "gridpress.budget_retries" not in metrics


def test_failures_and_retries(collector, reader):
    collector.record_compression(
        strategy="custom",
        compression_ratio=0.0,
        compressed_tokens=0,
        step_timings={},
        failed_step="FormatAggregation",
        retried=True,
    )

    metrics = collect(reader)

    failure = metrics["gridpress.step_failures"][0]
    assert failure.attributes == {"strategy": "custom", "step": "FormatAggregation"}
    assert metrics["gridpress.budget_retries"][0].value == 1


def test_measure_time(collector, reader):
    with collector.measure_time("anchor_detection"):
        pass
    with collector.measure_time("anchor_detection"):
        pass

    point = collect(reader)["gridpress.time.anchor_detection"][0]
    assert point.count == 2


def test_measure_time_records_on_error(collector, reader):
    with pytest.raises(RuntimeError):
        with collector.measure_time("pipeline"):
            raise RuntimeError("boom")

    assert collect(reader)["gridpress.time.pipeline"][0].count == 1


def test_memory_gauge(collector, reader):
    point = collect(reader)["gridpress.memory_usage"][0]
    assert point.value > 0


def test_global_collector_is_shared(monkeypatch):
    monkeypatch.setattr("gridpress.telemetry.metrics._collector", None)
    reader = InMemoryMetricReader()
    monkeypatch.setattr(
        "gridpress.telemetry.metrics.MetricsCollector",
        lambda: MetricsCollector(reader=reader),
    )

    assert get_metrics_collector() is get_metrics_collector()
