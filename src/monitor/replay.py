"""
Offline replay of recorded metrics through the detectors.

Useful for tuning thresholds against exported history. The CSV needs
`name`, `value` and `timestamp` columns; `unit` and `hostname` are optional.
"""

from collections.abc import Sequence
from itertools import groupby
from pathlib import Path

import pandas as pd
import structlog

from src.detection.methods import AnomalyDetector
from src.telemetry.models import SENTINEL, Anomaly, Metric, SystemSource

from .monitor import run_detectors

logger = structlog.get_logger(__name__)

REQUIRED_COLUMNS = ["name", "value", "timestamp"]


def validate_frame(frame: pd.DataFrame) -> None:
    """Validate that the frame has the required format

    Raises:
        ValueError: If required columns are missing
    """
    missing = set(REQUIRED_COLUMNS) - set(frame.columns)
    if missing:
        raise ValueError(f"Replay file missing required columns: {sorted(missing)}")


def load_metrics_csv(path: Path | str) -> list[Metric]:
    """Read a CSV export into metrics ordered by timestamp"""
    frame = pd.read_csv(path)
    validate_frame(frame)

    frame["timestamp"] = pd.to_datetime(frame["timestamp"], utc=True)
    frame["value"] = pd.to_numeric(frame["value"], errors="coerce")
    frame = frame.sort_values("timestamp", kind="stable")

    has_unit = "unit" in frame.columns
    has_host = "hostname" in frame.columns

    metrics = []
    for row in frame.itertuples(index=False):
        unit = getattr(row, "unit") if has_unit else None
        hostname = getattr(row, "hostname") if has_host else None
        metrics.append(
            Metric(
                name=str(row.name),
                value=float(row.value),
                source=SystemSource(hostname=hostname if isinstance(hostname, str) else SENTINEL),
                unit=unit if isinstance(unit, str) else None,
                timestamp=row.timestamp.to_pydatetime(),
            )
        )

    logger.info("Loaded replay metrics", path=str(path), rows=len(metrics))
    return metrics


def replay(metrics: Sequence[Metric], detectors: Sequence[AnomalyDetector]) -> list[Anomaly]:
    """Feed metrics to the detectors one timestamp batch at a time"""
    anomalies: list[Anomaly] = []
    batches = 0
    for _, batch in groupby(metrics, key=lambda m: m.timestamp):
        anomalies.extend(run_detectors(detectors, list(batch)))
        batches += 1

    logger.info("Replay completed", batches=batches, anomalies=len(anomalies))
    return anomalies
