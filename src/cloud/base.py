"""
Base abstract interface for cloud metrics providers.

All providers must inherit from MetricsProvider and implement:
- verify_connection(): Probe connectivity and permissions
- discover_instances(): List compute instances, optionally filtered by tag
- fetch_instance_metrics(): Monitoring readings for instances
- fetch_cost_data(): Billing amounts per service
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import ConnectionStatus, CostDataPoint, Instance, MetricDataPoint


class ProviderError(RuntimeError):
    """Raised when a provider API call fails"""


class MetricsProvider(ABC):
    """Abstract base class for cloud metrics providers"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier stamped onto every reading"""
        pass

    @abstractmethod
    def verify_connection(self) -> ConnectionStatus:
        pass

    @abstractmethod
    def discover_instances(
        self, tag_filters: list[tuple[str, str]] | None = None
    ) -> list[Instance]:
        """List instances, keeping only those carrying every given tag key/value"""
        pass

    @abstractmethod
    def fetch_instance_metrics(
        self,
        instance_ids: list[str],
        metric_names: list[str],
        start_time: datetime,
        end_time: datetime,
    ) -> list[MetricDataPoint]:
        """Fetch readings for each instance/metric pair

        Args:
            instance_ids: Instances to query, empty means every discovered instance
            metric_names: Provider metric names (e.g. CPUUtilization)
            start_time: Start of the query window (UTC)
            end_time: End of the query window (UTC)
        """
        pass

    @abstractmethod
    def fetch_cost_data(
        self, start_date: datetime, end_date: datetime, granularity: str = "DAILY"
    ) -> list[CostDataPoint]:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"
