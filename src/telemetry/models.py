"""
Canonical telemetry model shared by converters and detectors.

A `Metric` is one named, timestamped, sourced numeric observation. An `Anomaly`
is a flagged metric carrying a reason and a severity.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import IntEnum
from typing import Any

SENTINEL = "unknown"


@dataclass(frozen=True)
class SystemSource:
    """Metric observed on a local host"""

    hostname: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "system", "hostname": self.hostname}


@dataclass(frozen=True)
class CloudSource:
    """Metric reported by a cloud provider

    `provider` is a free string so new provider adapters don't change the model.
    Both fields are always populated, SENTINEL stands in for an unknown origin.
    """

    provider: str
    instance_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "cloud", "provider": self.provider, "instance_id": self.instance_id}


MetricSource = SystemSource | CloudSource


class Severity(IntEnum):
    """Ordinal anomaly severity (WARNING < CRITICAL)"""

    WARNING = 1
    CRITICAL = 2

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Metric:
    """A single observed value at a point in time"""

    name: str  # dotted hierarchy, e.g. disk._var_log.usage_percent
    value: float
    source: MetricSource
    unit: str | None  # "bytes", "%", or None for plain counts
    timestamp: datetime  # when the value was observed (UTC)

    def copy(self) -> "Metric":
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and serialization"""
        return {
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source.to_dict(),
        }


@dataclass(frozen=True)
class Anomaly:
    """A flagged deviation. Owns its own copy of the triggering metric."""

    metric: Metric
    reason: str
    severity: Severity
    detected_at: datetime  # when detection ran, not when the value was observed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and serialization"""
        return {
            "metric": self.metric.to_dict(),
            "reason": self.reason,
            "severity": self.severity.label,
            "detected_at": self.detected_at.isoformat(),
        }
