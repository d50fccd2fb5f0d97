"""
Polling monitor: acquisition -> conversion -> detection.

Each cycle gathers a host snapshot and provider readings, converts them into
one metric batch, runs every configured detector over it and logs the
anomalies. A collaborator that fails is logged and skipped; the cycle
continues with whatever the others produced.
"""

import time
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

import structlog

from src.cloud.base import MetricsProvider, ProviderError
from src.detection.methods import AnomalyDetector, get_method
from src.system.collector import CollectorError, SystemCollector
from src.telemetry.convert import cost_to_metric, data_point_to_metric, snapshot_to_metrics
from src.telemetry.models import Anomaly, Metric, Severity

from .config import ConfigError, MonitorConfig

logger = structlog.get_logger(__name__)


def build_detectors(
    config: MonitorConfig, methods: Sequence[str] | None = None
) -> list[AnomalyDetector]:
    """Instantiate detection methods with their configured settings

    Args:
        config: Monitor configuration holding per-method settings
        methods: Method names to build. Defaults to config.detection.methods

    Raises:
        ConfigError: If a method is unknown or its settings are invalid
    """
    detectors = []
    for method_name in methods if methods is not None else config.detection.methods:
        try:
            detectors.append(
                get_method(method_name, config.detection.method_configs.get(method_name, {}))
            )
        except ValueError as e:
            raise ConfigError(f"Invalid detection method '{method_name}': {e}") from e
    return detectors


def run_detectors(
    detectors: Sequence[AnomalyDetector], metrics: Sequence[Metric]
) -> list[Anomaly]:
    """Run each detector independently over the same batch and concatenate results"""
    anomalies: list[Anomaly] = []
    for detector in detectors:
        anomalies.extend(detector.detect(metrics))
    return anomalies


def log_anomaly(anomaly: Anomaly) -> None:
    log = logger.error if anomaly.severity is Severity.CRITICAL else logger.warning
    log(
        "Anomaly detected",
        metric=anomaly.metric.name,
        severity=anomaly.severity.label,
        value=anomaly.metric.value,
        unit=anomaly.metric.unit,
        source=anomaly.metric.source.to_dict(),
        reason=anomaly.reason,
    )


class InfraMonitor:
    """Runs detection cycles over local and cloud telemetry"""

    def __init__(
        self,
        config: MonitorConfig,
        collector: SystemCollector | None = None,
        provider: MetricsProvider | None = None,
        detectors: Sequence[AnomalyDetector] | None = None,
    ):
        self.config = config
        self.collector = collector
        self.provider = provider
        self.detectors = list(detectors) if detectors is not None else build_detectors(config)

        # Newest timestamp seen per cloud series, so overlapping query windows
        # don't feed the same reading to the detectors twice
        self._watermarks: dict[tuple[str, str, str], datetime] = {}

        self.stats = {
            "cycles": 0,
            "metrics_processed": 0,
            "anomalies_detected": 0,
            "collector_errors": 0,
            "provider_errors": 0,
        }

        logger.info(
            "Monitor initialized",
            system=collector is not None,
            cloud=provider.name if provider is not None else None,
            detectors=[type(d).__name__ for d in self.detectors],
            poll_interval_seconds=config.poll_interval_seconds,
        )

    def collect_system_metrics(self) -> list[Metric]:
        if self.collector is None:
            return []
        try:
            snapshot = self.collector.collect_all()
        except CollectorError as e:
            self.stats["collector_errors"] += 1
            logger.error("System collection failed", error=str(e))
            return []
        return snapshot_to_metrics(snapshot)

    def collect_cloud_metrics(self, now: datetime) -> list[Metric]:
        if self.provider is None:
            return []

        aws = self.config.aws
        metrics: list[Metric] = []
        try:
            instance_ids = self._target_instances()
            points = self.provider.fetch_instance_metrics(
                instance_ids=instance_ids,
                metric_names=self.config.metrics.instance_metrics,
                start_time=now - timedelta(minutes=aws.lookback_minutes),
                end_time=now,
            )
            metrics.extend(data_point_to_metric(point) for point in points)
        except ProviderError as e:
            self.stats["provider_errors"] += 1
            logger.error("Cloud metrics collection failed", provider=self.provider.name, error=str(e))

        if aws.collect_cost:
            try:
                costs = self.provider.fetch_cost_data(
                    start_date=now - timedelta(days=aws.cost_lookback_days), end_date=now
                )
                metrics.extend(cost_to_metric(point) for point in costs)
            except ProviderError as e:
                self.stats["provider_errors"] += 1
                logger.error("Cost data collection failed", provider=self.provider.name, error=str(e))

        return self._drop_seen(metrics)

    def _target_instances(self) -> list[str]:
        """Configured instance ids, or those matching the tag filters

        An empty list lets the provider discover every instance.
        """
        aws = self.config.aws
        if aws.instance_ids or not aws.tag_filters:
            return list(aws.instance_ids)

        instances = self.provider.discover_instances(list(aws.tag_filters.items()))
        if not instances:
            raise ProviderError(f"No instances match tag filters {aws.tag_filters}")
        return [instance.instance_id for instance in instances]

    def _drop_seen(self, metrics: list[Metric]) -> list[Metric]:
        fresh = []
        for metric in sorted(metrics, key=lambda m: m.timestamp):
            source = metric.source
            key = (metric.name, getattr(source, "provider", ""), getattr(source, "instance_id", ""))
            last = self._watermarks.get(key)
            if last is not None and metric.timestamp <= last:
                continue
            self._watermarks[key] = metric.timestamp
            fresh.append(metric)
        return fresh

    def run_cycle(self) -> list[Anomaly]:
        """Run one acquisition and detection cycle"""
        now = datetime.now(UTC)

        metrics = self.collect_system_metrics()
        metrics.extend(self.collect_cloud_metrics(now))

        anomalies = run_detectors(self.detectors, metrics)
        for anomaly in anomalies:
            log_anomaly(anomaly)

        self.stats["cycles"] += 1
        self.stats["metrics_processed"] += len(metrics)
        self.stats["anomalies_detected"] += len(anomalies)

        logger.debug("Cycle completed", metrics=len(metrics), anomalies=len(anomalies))
        return anomalies

    def run(self, duration_seconds: int | None = None, max_cycles: int | None = None):
        """Run cycles continuously

        Args:
            duration_seconds: Optional duration in seconds. If None, runs indefinitely.
            max_cycles: Optional number of cycles after which to stop.
        """
        logger.info(
            "Starting monitor",
            duration=duration_seconds if duration_seconds else "indefinite",
            poll_interval_seconds=self.config.poll_interval_seconds,
        )

        start_time = time.time()

        try:
            while True:
                cycle_start = time.time()
                self.run_cycle()

                elapsed = time.time() - start_time
                if max_cycles and self.stats["cycles"] >= max_cycles:
                    break
                if duration_seconds and elapsed >= duration_seconds:
                    logger.info("Duration limit reached", duration_seconds=duration_seconds)
                    break

                remaining = self.config.poll_interval_seconds - (time.time() - cycle_start)
                if remaining > 0:
                    time.sleep(remaining)

        except KeyboardInterrupt:
            logger.info("Received interrupt signal, stopping monitor")

        except Exception as e:
            logger.error("Monitor error", error=str(e), exc_info=True)
            raise

        finally:
            logger.info(
                "Monitor stopped",
                cycles=self.stats["cycles"],
                metrics_processed=self.stats["metrics_processed"],
                anomalies_detected=self.stats["anomalies_detected"],
                collector_errors=self.stats["collector_errors"],
                provider_errors=self.stats["provider_errors"],
                elapsed_sec=round(time.time() - start_time, 1),
            )
