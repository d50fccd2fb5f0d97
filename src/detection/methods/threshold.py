"""
Static threshold anomaly detection method.

Stateless: each value is compared against fixed warning/critical limits
looked up by glob pattern on the metric name. Names without a matching rule
are ignored.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from fnmatch import fnmatchcase
from typing import Any

import structlog

from src.telemetry.models import Anomaly, Metric, Severity

from .base import format_value, is_finite

logger = structlog.get_logger(__name__)


def _default_limits() -> dict[str, list[float]]:
    return {
        "memory.usage_percent": [85.0, 95.0],
        "disk.*.usage_percent": [85.0, 95.0],
        "CPUUtilization": [80.0, 95.0],
    }


@dataclass
class ThresholdConfig:
    """Configuration for the threshold method

    `limits` maps a glob pattern to `[warning, critical]` upper bounds. The
    first matching pattern (in insertion order) wins.
    """

    limits: dict[str, list[float]] = field(default_factory=_default_limits)

    def __post_init__(self):
        if not isinstance(self.limits, dict):
            raise ValueError(
                f"limits must map patterns to [warning, critical], got {self.limits!r}"
            )
        for pattern, bounds in self.limits.items():
            if (
                not isinstance(bounds, list | tuple)
                or len(bounds) != 2
                or not all(isinstance(b, int | float) and not isinstance(b, bool) for b in bounds)
            ):
                raise ValueError(
                    f"Limits for '{pattern}' must be [warning, critical], got {bounds!r}"
                )
            warning, critical = bounds
            if warning > critical:
                raise ValueError(
                    f"Warning limit above critical limit for '{pattern}': {warning} > {critical}"
                )


class ThresholdDetector:
    """Flags values at or above fixed per-pattern limits"""

    def __init__(self, config: dict | None = None):
        try:
            self.config = ThresholdConfig(**(config or {}))
        except TypeError as e:
            raise ValueError(f"Invalid threshold configuration: {e}") from e
        self._name = "threshold"
        logger.info("Threshold method initialized", rules=len(self.config.limits))

    @property
    def name(self) -> str:
        return self._name

    def get_config(self) -> dict[str, Any]:
        return {"limits": {k: list(v) for k, v in self.config.limits.items()}}

    def limits_for(self, metric_name: str) -> tuple[float, float] | None:
        for pattern, (warning, critical) in self.config.limits.items():
            if fnmatchcase(metric_name, pattern):
                return warning, critical
        return None

    def detect(self, metrics: Sequence[Metric]) -> list[Anomaly]:
        if not metrics:
            return []

        detected_at = datetime.now(UTC)
        anomalies: list[Anomaly] = []

        for metric in metrics:
            limits = self.limits_for(metric.name)
            if limits is None:
                continue
            warning, critical = limits

            if not is_finite(metric.value):
                anomalies.append(
                    Anomaly(
                        metric=metric.copy(),
                        reason=f"{metric.name} reported non-finite value {metric.value}",
                        severity=Severity.CRITICAL,
                        detected_at=detected_at,
                    )
                )
                continue

            if metric.value >= critical:
                severity, limit = Severity.CRITICAL, critical
            elif metric.value >= warning:
                severity, limit = Severity.WARNING, warning
            else:
                continue

            anomalies.append(
                Anomaly(
                    metric=metric.copy(),
                    reason=(
                        f"{metric.name} value {format_value(metric.value)} crossed "
                        f"{severity.label} threshold {format_value(limit)}"
                    ),
                    severity=severity,
                    detected_at=detected_at,
                )
            )

        return anomalies

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.get_config()})"
