"""
Cloud provider telemetry acquisition.
"""

from .aws import AWSProvider
from .base import MetricsProvider, ProviderError
from .models import ConnectionStatus, CostDataPoint, Instance, MetricDataPoint, PermissionsCheck

__all__ = [
    "AWSProvider",
    "ConnectionStatus",
    "CostDataPoint",
    "Instance",
    "MetricDataPoint",
    "MetricsProvider",
    "PermissionsCheck",
    "ProviderError",
]
