"""
Anomaly Detection

Pluggable detectors evaluated over batches of canonical metrics:
- rolling_zscore: per-series rolling baseline with z-score severity
- threshold: fixed warning/critical limits per metric name pattern
"""

from .methods import (
    METHOD_REGISTRY,
    AnomalyDetector,
    RollingZScoreDetector,
    ThresholdDetector,
    get_method,
    list_methods,
)
from .window import RollingWindow

__all__ = [
    "METHOD_REGISTRY",
    "AnomalyDetector",
    "RollingWindow",
    "RollingZScoreDetector",
    "ThresholdDetector",
    "get_method",
    "list_methods",
]
