"""
Rolling baseline z-score anomaly detection method.

Each metric name is its own series (so `process.123.cpu_percent` and
`process.456.cpu_percent` never share a baseline). For every series the
detector keeps a bounded window of the last observed values and flags a new
value by its z-score against that window.

Workflow per value:
1. Non-finite values are always CRITICAL and never enter the window
2. Cold series (fewer than `min_samples` values) are not evaluated
3. Warm series: z = (v - mean) / std, classified against the thresholds
4. The value is folded into the window whether or not it was flagged, so a
   sustained level shift stops alarming once the window has absorbed it
"""

import math
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from src.telemetry.models import Anomaly, Metric, Severity

from ..window import RollingWindow
from .base import format_value, is_finite, matches_any

logger = structlog.get_logger(__name__)


@dataclass
class RollingZScoreConfig:
    """Configuration for the rolling z-score method"""

    window_size: int = 20  # Values kept per series
    min_samples: int = 5  # Warm-up count before a series is evaluated
    warning_z: float = 2.0
    critical_z: float = 3.0
    metric_names: list[str] = field(default_factory=list)  # Glob patterns, empty = all

    def __post_init__(self):
        if self.window_size < 2:
            raise ValueError(f"window_size must be >= 2, got {self.window_size}")
        if not 1 <= self.min_samples <= self.window_size:
            raise ValueError(
                f"min_samples must be between 1 and window_size ({self.window_size}), "
                f"got {self.min_samples}"
            )
        if not 0 < self.warning_z <= self.critical_z:
            raise ValueError(
                f"Thresholds must satisfy 0 < warning_z <= critical_z, "
                f"got {self.warning_z} / {self.critical_z}"
            )
        if not isinstance(self.metric_names, list | tuple) or not all(
            isinstance(pattern, str) for pattern in self.metric_names
        ):
            raise ValueError(
                f"metric_names must be a list of glob patterns, got {self.metric_names!r}"
            )


class RollingZScoreDetector:
    """Per-metric-name rolling baseline detector"""

    def __init__(self, config: dict | None = None):
        """Initialize with configuration

        Args:
            config: Dictionary with keys matching RollingZScoreConfig fields
        """
        try:
            self.config = RollingZScoreConfig(**(config or {}))
        except TypeError as e:
            raise ValueError(f"Invalid rolling_zscore configuration: {e}") from e
        self._name = "rolling_zscore"
        self._windows: dict[str, RollingWindow] = {}
        self._lock = threading.Lock()

        logger.info(
            "Rolling z-score method initialized",
            window_size=self.config.window_size,
            min_samples=self.config.min_samples,
            warning_z=self.config.warning_z,
            critical_z=self.config.critical_z,
        )

    @property
    def name(self) -> str:
        return self._name

    def get_config(self) -> dict[str, Any]:
        return {
            "window_size": self.config.window_size,
            "min_samples": self.config.min_samples,
            "warning_z": self.config.warning_z,
            "critical_z": self.config.critical_z,
            "metric_names": list(self.config.metric_names),
        }

    def is_warm(self, metric_name: str) -> bool:
        """Whether a series has enough history to be evaluated"""
        with self._lock:
            window = self._windows.get(metric_name)
            return window is not None and window.count >= self.config.min_samples

    def tracked_series(self) -> list[str]:
        with self._lock:
            return list(self._windows)

    def detect(self, metrics: Sequence[Metric]) -> list[Anomaly]:
        """Evaluate a batch, updating the per-name baselines"""
        if not metrics:
            return []

        detected_at = datetime.now(UTC)

        groups: dict[str, list[Metric]] = {}
        for metric in metrics:
            if matches_any(metric.name, self.config.metric_names):
                groups.setdefault(metric.name, []).append(metric)

        anomalies: list[Anomaly] = []
        with self._lock:
            for name, series in groups.items():
                window = self._windows.get(name)
                if window is None:
                    window = RollingWindow(self.config.window_size)
                    self._windows[name] = window

                for metric in series:
                    anomaly = self._evaluate(metric, window, detected_at)
                    if anomaly is not None:
                        anomalies.append(anomaly)

        if anomalies:
            logger.debug(
                "Rolling z-score batch evaluated",
                metrics=len(metrics),
                series=len(groups),
                anomalies=len(anomalies),
            )
        return anomalies

    def _evaluate(
        self, metric: Metric, window: RollingWindow, detected_at: datetime
    ) -> Anomaly | None:
        value = metric.value

        if not is_finite(value):
            return Anomaly(
                metric=metric.copy(),
                reason=f"{metric.name} reported non-finite value {value}",
                severity=Severity.CRITICAL,
                detected_at=detected_at,
            )

        anomaly = None
        if window.count >= self.config.min_samples:
            mean, std = window.mean, window.std
            z_score = self._z_score(value, mean, std)
            severity = self._classify(z_score)
            if severity is not None:
                threshold = (
                    self.config.critical_z
                    if severity is Severity.CRITICAL
                    else self.config.warning_z
                )
                anomaly = Anomaly(
                    metric=metric.copy(),
                    reason=(
                        f"{metric.name} value {format_value(value)} deviates from baseline "
                        f"mean {format_value(mean)} (std {format_value(std)}, "
                        f"z={z_score:+.2f}, threshold |z|>={threshold})"
                    ),
                    severity=severity,
                    detected_at=detected_at,
                )

        window.push(float(value))
        return anomaly

    @staticmethod
    def _z_score(value: float, mean: float, std: float) -> float:
        """z-score of value, +/-inf when a zero-variance series changes"""
        if std == 0.0:
            if value == mean:
                return 0.0
            return math.copysign(math.inf, value - mean)
        return (value - mean) / std

    def _classify(self, z_score: float) -> Severity | None:
        magnitude = abs(z_score)
        if magnitude >= self.config.critical_z:
            return Severity.CRITICAL
        if magnitude >= self.config.warning_z:
            return Severity.WARNING
        return None

    def reset(self, metric_name: str | None = None) -> None:
        """Drop the baseline of one series, or of all series"""
        with self._lock:
            if metric_name is None:
                self._windows.clear()
            else:
                self._windows.pop(metric_name, None)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.get_config()})"
