"""Operational helpers."""

from mosim.ops.logging import configure_logging
from mosim.ops.metrics import InMemoryMetricsRecorder, MetricsRecorder, get_metrics_recorder

__all__ = ["configure_logging", "InMemoryMetricsRecorder", "MetricsRecorder", "get_metrics_recorder"]
