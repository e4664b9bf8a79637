"""Telemetry module for compression metrics."""

from .metrics import MetricsCollector, get_metrics_collector

__all__ = [
    "MetricsCollector",
    "get_metrics_collector",
]
