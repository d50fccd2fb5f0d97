"""
Unified telemetry model and source converters.
"""

from .convert import cost_to_metric, data_point_to_metric, sanitize_segment, snapshot_to_metrics
from .models import SENTINEL, Anomaly, CloudSource, Metric, MetricSource, Severity, SystemSource

__all__ = [
    "SENTINEL",
    "Anomaly",
    "CloudSource",
    "Metric",
    "MetricSource",
    "Severity",
    "SystemSource",
    "cost_to_metric",
    "data_point_to_metric",
    "sanitize_segment",
    "snapshot_to_metrics",
]
