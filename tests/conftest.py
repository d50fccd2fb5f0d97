"""
Pytest configuration and shared fixtures.
"""

from datetime import UTC, datetime, timedelta

import pytest

from src.cloud.models import MetricDataPoint
from src.monitor.config import MonitorConfig
from src.system.models import (
    DiskStats,
    MemoryStats,
    ProcessInfo,
    ProcessSummary,
    SystemSnapshot,
)
from src.telemetry.models import Metric, SystemSource

BASE_TIME = datetime(2025, 10, 2, 12, 0, 0, tzinfo=UTC)


# Telemetry fixtures
@pytest.fixture
def base_time():
    """Fixed observation time for reproducible metrics."""
    return BASE_TIME


@pytest.fixture
def system_snapshot():
    """Snapshot with 1 memory record, 2 disk mounts and 3 listed processes."""
    return SystemSnapshot(
        hostname="web-01",
        memory=MemoryStats(
            total_bytes=16_000_000_000,
            used_bytes=8_000_000_000,
            available_bytes=8_000_000_000,
            usage_percent=50.0,
            swap_total_bytes=2_000_000_000,
            swap_used_bytes=100_000_000,
            timestamp=BASE_TIME,
        ),
        disks=(
            DiskStats(
                mount_point="/",
                filesystem_type="ext4",
                total_bytes=500_000_000_000,
                used_bytes=200_000_000_000,
                available_bytes=300_000_000_000,
                usage_percent=40.0,
                timestamp=BASE_TIME + timedelta(seconds=1),
            ),
            DiskStats(
                mount_point="/var/log",
                filesystem_type="xfs",
                total_bytes=100_000_000_000,
                used_bytes=90_000_000_000,
                available_bytes=10_000_000_000,
                usage_percent=90.0,
                timestamp=BASE_TIME + timedelta(seconds=2),
            ),
        ),
        processes=ProcessSummary(
            process_count=312,
            top=(
                ProcessInfo(pid=123, name="postgres", cpu_percent=55.5, memory_bytes=1_000_000),
                ProcessInfo(pid=456, name="python", cpu_percent=12.0, memory_bytes=500_000),
                ProcessInfo(pid=789, name="nginx", cpu_percent=1.5, memory_bytes=50_000),
            ),
            timestamp=BASE_TIME + timedelta(seconds=3),
        ),
    )


@pytest.fixture
def cloud_point():
    """CloudWatch-style reading for one instance."""
    return MetricDataPoint(
        metric_name="CPUUtilization",
        resource_id="i-0abc123",
        value=42.5,
        unit="Percent",
        timestamp=BASE_TIME,
        provider="aws",
    )


@pytest.fixture
def make_metric():
    """Factory for metrics on a single host, one second apart by index."""

    def _make(name: str, value: float, index: int = 0, hostname: str = "web-01") -> Metric:
        return Metric(
            name=name,
            value=value,
            source=SystemSource(hostname=hostname),
            unit=None,
            timestamp=BASE_TIME + timedelta(seconds=index),
        )

    return _make


# Monitor fixtures
@pytest.fixture
def monitor_config():
    """Default configuration with a short poll interval for tests."""
    config = MonitorConfig()
    config.poll_interval_seconds = 0.0
    return config
