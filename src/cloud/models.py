"""
Data returned by cloud provider adapters.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class PermissionsCheck:
    """Which provider APIs the current credentials can reach"""

    cost_explorer_read: bool = False
    metrics_monitor_read: bool = False
    instance_describe: bool = False


@dataclass
class ConnectionStatus:
    """Result of a connectivity probe against a provider"""

    connected: bool
    region: str
    permissions: PermissionsCheck


@dataclass
class Instance:
    """Compute instance inventory entry"""

    instance_id: str
    instance_type: str
    state: str
    name: str | None = None
    tags: list[tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class MetricDataPoint:
    """A single monitoring reading for a resource"""

    metric_name: str
    resource_id: str | None
    value: float
    unit: str | None
    timestamp: datetime
    provider: str  # identifier of the adapter that produced the reading


@dataclass(frozen=True)
class CostDataPoint:
    """Billed amount for one service over one period"""

    service: str | None
    amount: float
    unit: str
    period_start: datetime
    period_end: datetime
    provider: str
