"""
Tests for source converters.
"""

import copy
from dataclasses import replace

from src.cloud.models import CostDataPoint
from src.telemetry.convert import (
    cost_to_metric,
    data_point_to_metric,
    sanitize_segment,
    snapshot_to_metrics,
)
from src.telemetry.models import SENTINEL, CloudSource, SystemSource


class TestSanitizeSegment:
    """Tests for metric name segment sanitization."""

    def test_replaces_separators(self):
        assert sanitize_segment("/var/log") == "_var_log"
        assert sanitize_segment("/mnt/My Disk.v2") == "_mnt_My_Disk_v2"

    def test_plain_text_unchanged(self):
        assert sanitize_segment("AmazonEC2") == "AmazonEC2"


class TestSnapshotToMetrics:
    """Tests for system snapshot conversion."""

    def test_metric_count(self, system_snapshot):
        """6 memory + 2 mounts * 4 + 1 count + 3 processes * 2 = 21 metrics."""
        metrics = snapshot_to_metrics(system_snapshot)

        assert len(metrics) == 6 + 2 * 4 + 1 + 3 * 2

    def test_all_metrics_share_system_source(self, system_snapshot):
        metrics = snapshot_to_metrics(system_snapshot)

        assert {m.source for m in metrics} == {SystemSource(hostname="web-01")}

    def test_ordering(self, system_snapshot):
        """Memory, disks per mount, process count, then per-process metrics."""
        names = [m.name for m in snapshot_to_metrics(system_snapshot)]

        assert names == [
            "memory.total_bytes",
            "memory.used_bytes",
            "memory.available_bytes",
            "memory.usage_percent",
            "memory.swap_total_bytes",
            "memory.swap_used_bytes",
            "disk._.total_bytes",
            "disk._.used_bytes",
            "disk._.available_bytes",
            "disk._.usage_percent",
            "disk._var_log.total_bytes",
            "disk._var_log.used_bytes",
            "disk._var_log.available_bytes",
            "disk._var_log.usage_percent",
            "process.count",
            "process.123.cpu_percent",
            "process.123.memory_bytes",
            "process.456.cpu_percent",
            "process.456.memory_bytes",
            "process.789.cpu_percent",
            "process.789.memory_bytes",
        ]

    def test_mount_point_sanitized(self, system_snapshot):
        """A /var/log mount produces disk._var_log.* names with no raw slash."""
        names = [m.name for m in snapshot_to_metrics(system_snapshot) if m.name.startswith("disk.")]

        assert any("disk._var_log." in name for name in names)
        assert all("/" not in name for name in names)

    def test_units_and_values(self, system_snapshot):
        by_name = {m.name: m for m in snapshot_to_metrics(system_snapshot)}

        assert by_name["memory.total_bytes"].unit == "bytes"
        assert by_name["memory.total_bytes"].value == 16_000_000_000.0
        assert isinstance(by_name["memory.total_bytes"].value, float)
        assert by_name["memory.usage_percent"].unit == "%"
        assert by_name["memory.usage_percent"].value == 50.0
        assert by_name["process.count"].unit is None
        assert by_name["process.count"].value == 312.0
        assert by_name["process.123.cpu_percent"].value == 55.5
        assert by_name["process.456.memory_bytes"].unit == "bytes"

    def test_timestamps_come_from_sub_records(self, system_snapshot):
        """Each group carries the observation time of its own record."""
        by_name = {m.name: m for m in snapshot_to_metrics(system_snapshot)}

        assert by_name["memory.used_bytes"].timestamp == system_snapshot.memory.timestamp
        assert by_name["disk._.used_bytes"].timestamp == system_snapshot.disks[0].timestamp
        assert by_name["disk._var_log.used_bytes"].timestamp == system_snapshot.disks[1].timestamp
        assert by_name["process.count"].timestamp == system_snapshot.processes.timestamp
        assert by_name["process.789.cpu_percent"].timestamp == system_snapshot.processes.timestamp

    def test_conversion_is_idempotent(self, system_snapshot):
        """Converting twice gives equal batches and leaves the snapshot untouched."""
        before = copy.deepcopy(system_snapshot)

        first = snapshot_to_metrics(system_snapshot)
        second = snapshot_to_metrics(system_snapshot)

        assert first == second
        assert first is not second
        assert system_snapshot == before

    def test_disabled_sections_are_omitted(self, system_snapshot):
        snapshot = replace(system_snapshot, memory=None, processes=None)

        metrics = snapshot_to_metrics(snapshot)

        assert len(metrics) == 8
        assert all(m.name.startswith("disk.") for m in metrics)

    def test_empty_snapshot(self, system_snapshot):
        snapshot = replace(system_snapshot, memory=None, disks=(), processes=None)

        assert snapshot_to_metrics(snapshot) == []


class TestDataPointToMetric:
    """Tests for cloud data point conversion."""

    def test_basic_conversion(self, cloud_point):
        metric = data_point_to_metric(cloud_point)

        assert metric.name == "CPUUtilization"
        assert metric.value == 42.5
        assert metric.unit == "Percent"
        assert metric.timestamp == cloud_point.timestamp
        assert metric.source == CloudSource(provider="aws", instance_id="i-0abc123")

    def test_missing_resource_id_uses_sentinel(self, cloud_point):
        """No resource id converts to instance_id == 'unknown'."""
        metric = data_point_to_metric(replace(cloud_point, resource_id=None))

        assert isinstance(metric.source, CloudSource)
        assert metric.source.instance_id == "unknown"
        assert metric.source.instance_id == SENTINEL

    def test_provider_is_taken_from_point(self, cloud_point):
        """The converter does not hard-code a provider."""
        metric = data_point_to_metric(replace(cloud_point, provider="gcp"))

        assert metric.source.provider == "gcp"

    def test_empty_provider_uses_sentinel(self, cloud_point):
        metric = data_point_to_metric(replace(cloud_point, provider=""))

        assert metric.source.provider == SENTINEL

    def test_missing_unit_is_absent(self, cloud_point):
        metric = data_point_to_metric(replace(cloud_point, unit=None))

        assert metric.unit is None


class TestCostToMetric:
    """Tests for billing data conversion."""

    def test_service_cost(self, base_time):
        point = CostDataPoint(
            service="Amazon Elastic Compute Cloud - Compute",
            amount=12.34,
            unit="USD",
            period_start=base_time,
            period_end=base_time.replace(day=3),
            provider="aws",
        )

        metric = cost_to_metric(point)

        assert metric.name == "cost.Amazon_Elastic_Compute_Cloud_-_Compute.amount"
        assert metric.value == 12.34
        assert metric.unit == "USD"
        assert metric.timestamp == point.period_end
        assert metric.source == CloudSource(provider="aws", instance_id=SENTINEL)

    def test_missing_service(self, base_time):
        point = CostDataPoint(
            service=None,
            amount=1.0,
            unit="USD",
            period_start=base_time,
            period_end=base_time,
            provider="aws",
        )

        assert cost_to_metric(point).name == "cost.unknown.amount"
