"""
Source converters: raw collector/provider records to canonical metrics.

Converters are pure. They never raise and never touch their input; missing
optional fields degrade to SENTINEL or an absent unit.
"""

from datetime import datetime

from src.cloud.models import CostDataPoint, MetricDataPoint
from src.system.models import DiskStats, MemoryStats, ProcessSummary, SystemSnapshot

from .models import SENTINEL, CloudSource, Metric, MetricSource, SystemSource

BYTES = "bytes"
PERCENT = "%"

_SEPARATORS = ("/", " ", ".")


def sanitize_segment(text: str) -> str:
    """Make a string safe to embed as one segment of a dotted metric name"""
    for sep in _SEPARATORS:
        text = text.replace(sep, "_")
    return text


def _metric(
    name: str, value: float, source: MetricSource, unit: str | None, timestamp: datetime
) -> Metric:
    return Metric(name=name, value=float(value), source=source, unit=unit, timestamp=timestamp)


def _memory_metrics(mem: MemoryStats, source: MetricSource) -> list[Metric]:
    readings = [
        ("memory.total_bytes", mem.total_bytes, BYTES),
        ("memory.used_bytes", mem.used_bytes, BYTES),
        ("memory.available_bytes", mem.available_bytes, BYTES),
        ("memory.usage_percent", mem.usage_percent, PERCENT),
        ("memory.swap_total_bytes", mem.swap_total_bytes, BYTES),
        ("memory.swap_used_bytes", mem.swap_used_bytes, BYTES),
    ]
    return [_metric(name, value, source, unit, mem.timestamp) for name, value, unit in readings]


def _disk_metrics(disk: DiskStats, source: MetricSource) -> list[Metric]:
    prefix = f"disk.{sanitize_segment(disk.mount_point)}"
    readings = [
        ("total_bytes", disk.total_bytes, BYTES),
        ("used_bytes", disk.used_bytes, BYTES),
        ("available_bytes", disk.available_bytes, BYTES),
        ("usage_percent", disk.usage_percent, PERCENT),
    ]
    return [
        _metric(f"{prefix}.{suffix}", value, source, unit, disk.timestamp)
        for suffix, value, unit in readings
    ]


def _process_metrics(summary: ProcessSummary, source: MetricSource) -> list[Metric]:
    metrics = [_metric("process.count", summary.process_count, source, None, summary.timestamp)]
    for proc in summary.top:
        metrics.append(
            _metric(
                f"process.{proc.pid}.cpu_percent",
                proc.cpu_percent,
                source,
                PERCENT,
                summary.timestamp,
            )
        )
        metrics.append(
            _metric(
                f"process.{proc.pid}.memory_bytes",
                proc.memory_bytes,
                source,
                BYTES,
                summary.timestamp,
            )
        )
    return metrics


def snapshot_to_metrics(snapshot: SystemSnapshot) -> list[Metric]:
    """Flatten a host snapshot into metrics

    Order: memory, disks (per mount, input order), process count, then
    per-process metrics (input order). All share the host's SystemSource.
    """
    source = SystemSource(hostname=snapshot.hostname or SENTINEL)

    metrics: list[Metric] = []
    if snapshot.memory is not None:
        metrics.extend(_memory_metrics(snapshot.memory, source))
    for disk in snapshot.disks:
        metrics.extend(_disk_metrics(disk, source))
    if snapshot.processes is not None:
        metrics.extend(_process_metrics(snapshot.processes, source))
    return metrics


def data_point_to_metric(point: MetricDataPoint) -> Metric:
    """Convert one provider monitoring reading into a metric"""
    source = CloudSource(
        provider=point.provider or SENTINEL,
        instance_id=point.resource_id or SENTINEL,
    )
    return Metric(
        name=point.metric_name,
        value=float(point.value),
        source=source,
        unit=point.unit or None,
        timestamp=point.timestamp,
    )


def cost_to_metric(point: CostDataPoint) -> Metric:
    """Convert one billing record into a `cost.<service>.amount` metric"""
    service = sanitize_segment(point.service) if point.service else SENTINEL
    return Metric(
        name=f"cost.{service}.amount",
        value=float(point.amount),
        source=CloudSource(provider=point.provider or SENTINEL, instance_id=SENTINEL),
        unit=point.unit or None,
        timestamp=point.period_end,
    )
