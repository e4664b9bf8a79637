"""Compression metrics collection for GridPress."""

import logging
import os
import time
from contextlib import contextmanager
from typing import Any

import psutil
from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    MetricExporter,
    MetricReader,
    PeriodicExportingMetricReader,
)

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collect and export compression metrics using OpenTelemetry.

    The collector owns its MeterProvider and never installs it globally, so
    several collectors (e.g. one per test) can coexist.
    """

    def __init__(
        self,
        service_name: str = "gridpress",
        reader: MetricReader | None = None,
        exporter: MetricExporter | None = None,
        export_interval_millis: int = 60000,  # 1 minute
    ):
        """Initialize metrics collector.

        Args:
            service_name: Name of the service
            reader: Metric reader to attach; overrides ``exporter``
            exporter: Exporter for the default periodic reader
            export_interval_millis: Export interval in milliseconds
        """
        if reader is None:
            reader = PeriodicExportingMetricReader(
                exporter=exporter or ConsoleMetricExporter(),
                export_interval_millis=export_interval_millis,
            )

        self.reader = reader
        self.provider = MeterProvider(metric_readers=[reader])
        self.meter = self.provider.get_meter(service_name)
        self._timers: dict[str, Any] = {}

        self._create_instruments()

    def _create_instruments(self):
        """Create compression metric instruments."""
        # Counters
        self.workbooks_compressed = self.meter.create_counter(
            name="gridpress.workbooks_compressed",
            description="Number of workbooks compressed",
            unit="workbooks",
        )

        self.step_failures = self.meter.create_counter(
            name="gridpress.step_failures",
            description="Number of failed pipeline steps",
            unit="steps",
        )

        self.budget_retries = self.meter.create_counter(
            name="gridpress.budget_retries",
            description="Stricter retries triggered by the token budget",
            unit="retries",
        )

        # Histograms
        self.compression_ratio = self.meter.create_histogram(
            name="gridpress.compression_ratio",
            description="Original tokens divided by compressed tokens",
            unit="ratio",
        )

        self.step_duration = self.meter.create_histogram(
            name="gridpress.step_duration",
            description="Time spent in a pipeline step",
            unit="ms",
        )

        self.compressed_tokens = self.meter.create_histogram(
            name="gridpress.compressed_tokens",
            description="Estimated tokens of the compressed output",
            unit="tokens",
        )

        # Gauges (via callbacks)
        self.meter.create_observable_gauge(
            name="gridpress.memory_usage",
            description="Current memory usage",
            unit="MB",
            callbacks=[self._get_memory_usage],
        )

    def _get_memory_usage(self, _options) -> Any:
        """Callback to get current memory usage."""
        process = psutil.Process(os.getpid())
        memory_mb = process.memory_info().rss / 1024 / 1024

        yield metrics.Observation(value=memory_mb, attributes={})

    def record_compression(
        self,
        strategy: str,
        compression_ratio: float,
        compressed_tokens: int,
        step_timings: dict[str, float],
        failed_step: str | None = None,
        retried: bool = False,
    ):
        """Record metrics for one compressed workbook.

        Args:
            strategy: Strategy name
            compression_ratio: Token compression ratio achieved
            compressed_tokens: Estimated tokens of the output
            step_timings: Step name -> elapsed milliseconds
            failed_step: Name of the step that failed, if any
            retried: Whether a stricter retry ran
        """
        attributes = {"strategy": strategy}

        self.workbooks_compressed.add(1, attributes)
        self.compression_ratio.record(compression_ratio, attributes)
        self.compressed_tokens.record(compressed_tokens, attributes)

        for step, elapsed in step_timings.items():
            self.step_duration.record(elapsed, {**attributes, "step": step})

        if failed_step:
            self.step_failures.add(1, {**attributes, "step": failed_step})

        if retried:
            self.budget_retries.add(1, attributes)

    @contextmanager
    def measure_time(self, operation: str):
        """Context manager to measure operation time.

        Example:
            with metrics_collector.measure_time("anchor_detection"):
                anchors = detector.find_workbook_anchors(workbook)
        """
        start_time = time.perf_counter()

        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000

            histogram = self._timers.get(operation)
            if histogram is None:
                histogram = self.meter.create_histogram(
                    name=f"gridpress.time.{operation}",
                    description=f"Time for {operation} operation",
                    unit="ms",
                )
                self._timers[operation] = histogram

            histogram.record(duration_ms)

    def shutdown(self) -> None:
        """Flush and shut down the collector's provider."""
        self.provider.shutdown()


# Global metrics collector
_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _collector
    if _collector is None:
        _collector = MetricsCollector()
    return _collector
