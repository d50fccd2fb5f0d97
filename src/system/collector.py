"""
Local host metrics collection.
"""

import socket
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime

import psutil
import structlog

from .models import DiskStats, MemoryStats, ProcessInfo, ProcessSummary, SystemSnapshot

logger = structlog.get_logger(__name__)


class CollectorError(RuntimeError):
    """Raised when the operating system cannot be queried"""


def _percent(used: int, total: int) -> float:
    if total == 0:
        return 0.0
    return used / total * 100.0


class SystemCollector(ABC):
    """Abstract base class for local system collectors"""

    @abstractmethod
    def collect_memory(self) -> MemoryStats:
        """Collect current memory and swap usage"""
        pass

    @abstractmethod
    def collect_disk(self) -> list[DiskStats]:
        """Collect usage for every monitored mount point"""
        pass

    @abstractmethod
    def collect_processes(self) -> ProcessSummary:
        """Collect the process count and the top processes by CPU"""
        pass

    @abstractmethod
    def collect_all(self) -> SystemSnapshot:
        """Collect a full snapshot of the host"""
        pass


class PsutilCollector(SystemCollector):
    """System collector backed by psutil"""

    def __init__(
        self,
        collect_memory: bool = True,
        collect_disk: bool = True,
        collect_processes: bool = True,
        top_n: int = 5,
        cpu_sample_seconds: float = 0.5,
    ):
        self.memory_enabled = collect_memory
        self.disk_enabled = collect_disk
        self.processes_enabled = collect_processes
        self.top_n = top_n
        self.cpu_sample_seconds = cpu_sample_seconds

        logger.info(
            "System collector initialized",
            memory=collect_memory,
            disk=collect_disk,
            processes=collect_processes,
            top_n=top_n,
        )

    def collect_all(self) -> SystemSnapshot:
        memory = self.collect_memory() if self.memory_enabled else None
        disks = self.collect_disk() if self.disk_enabled else []
        processes = self.collect_processes() if self.processes_enabled else None

        return SystemSnapshot(
            hostname=socket.gethostname() or "unknown",
            memory=memory,
            disks=tuple(disks),
            processes=processes,
        )

    def collect_memory(self) -> MemoryStats:
        try:
            vm = psutil.virtual_memory()
            swap = psutil.swap_memory()
        except (psutil.Error, OSError) as e:
            logger.error("Failed to read memory statistics", error=str(e))
            raise CollectorError("Failed to read memory statistics") from e

        return MemoryStats(
            total_bytes=vm.total,
            used_bytes=vm.used,
            available_bytes=vm.available,
            usage_percent=_percent(vm.used, vm.total),
            swap_total_bytes=swap.total,
            swap_used_bytes=swap.used,
            timestamp=datetime.now(UTC),
        )

    def collect_disk(self) -> list[DiskStats]:
        try:
            partitions = psutil.disk_partitions(all=False)
        except (psutil.Error, OSError) as e:
            logger.error("Failed to list disk partitions", error=str(e))
            raise CollectorError("Failed to list disk partitions") from e

        disks: list[DiskStats] = []
        for part in partitions:
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except (psutil.Error, OSError) as e:
                logger.debug("Skipping unreadable mount", mount=part.mountpoint, error=str(e))
                continue

            total = usage.total
            available = usage.free
            used = max(0, total - available)
            disks.append(
                DiskStats(
                    mount_point=part.mountpoint,
                    filesystem_type=part.fstype,
                    total_bytes=total,
                    used_bytes=used,
                    available_bytes=available,
                    usage_percent=_percent(used, total),
                    timestamp=datetime.now(UTC),
                )
            )

        return disks

    def collect_processes(self) -> ProcessSummary:
        try:
            procs = list(psutil.process_iter(["pid", "name"]))
        except (psutil.Error, OSError) as e:
            logger.error("Failed to enumerate processes", error=str(e))
            raise CollectorError("Failed to enumerate processes") from e

        # First cpu_percent() call only primes the counters
        for proc in procs:
            try:
                proc.cpu_percent(interval=None)
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
        if self.cpu_sample_seconds > 0:
            time.sleep(self.cpu_sample_seconds)

        samples: list[ProcessInfo] = []
        for proc in procs:
            try:
                with proc.oneshot():
                    samples.append(
                        ProcessInfo(
                            pid=proc.pid,
                            name=proc.info.get("name") or "",
                            cpu_percent=proc.cpu_percent(interval=None),
                            memory_bytes=proc.memory_info().rss,
                        )
                    )
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        samples.sort(key=lambda p: p.cpu_percent, reverse=True)

        return ProcessSummary(
            process_count=len(procs),
            top=tuple(samples[: self.top_n]),
            timestamp=datetime.now(UTC),
        )
