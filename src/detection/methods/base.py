"""
Detection strategy contract.

Any anomaly detection algorithm exposes a single capability, `detect()`,
over a batch of metrics. Detectors are independent and composable: callers
run several over the same batch and concatenate their anomalies.

Contract for implementations:
- Pure with respect to the batch: never reorder or mutate it, and every
  `Anomaly.metric` is a copy rather than an alias into the caller's batch.
- An empty batch yields an empty list.
- Metric names a detector does not understand are ignored, not rejected.
- State shared between calls (if any) is owned by the instance and safe to
  use from several threads.
"""

import math
from collections.abc import Sequence
from fnmatch import fnmatchcase
from typing import Protocol, runtime_checkable

from src.telemetry.models import Anomaly, Metric


@runtime_checkable
class AnomalyDetector(Protocol):
    """Capability interface implemented by every detection method"""

    def detect(self, metrics: Sequence[Metric]) -> list[Anomaly]:
        """Evaluate a batch of metrics

        Args:
            metrics: Any mix of sources and names, in any order

        Returns:
            Zero or more anomalies, each owning a copy of its metric
        """
        ...


def matches_any(name: str, patterns: Sequence[str] | None) -> bool:
    """True if `name` matches one of the glob patterns (or no filter is set)"""
    if not patterns:
        return True
    return any(fnmatchcase(name, pattern) for pattern in patterns)


def is_finite(value: float) -> bool:
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def format_value(value: float) -> str:
    return f"{value:.6g}"
