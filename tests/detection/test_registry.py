"""
Tests for the detection method registry.
"""

import pytest

from src.detection.methods import (
    METHOD_REGISTRY,
    RollingZScoreDetector,
    ThresholdDetector,
    get_method,
    list_methods,
)
from src.monitor.monitor import run_detectors
from src.telemetry.models import Severity


class TestMethodRegistry:
    """Tests for get_method and list_methods."""

    def test_list_methods(self):
        assert list_methods() == ["rolling_zscore", "threshold"]
        assert set(list_methods()) == set(METHOD_REGISTRY)

    def test_get_method_with_config(self):
        detector = get_method("rolling_zscore", {"window_size": 30})

        assert isinstance(detector, RollingZScoreDetector)
        assert detector.config.window_size == 30

    def test_get_method_default_config(self):
        assert isinstance(get_method("threshold"), ThresholdDetector)

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Available methods: rolling_zscore, threshold"):
            get_method("isolation_forest")

    def test_invalid_config_propagates(self):
        with pytest.raises(ValueError):
            get_method("rolling_zscore", {"window_size": 1})

    def test_unknown_setting_is_value_error(self):
        with pytest.raises(ValueError, match="Invalid rolling_zscore configuration"):
            get_method("rolling_zscore", {"window": 10})

    def test_malformed_limits_are_value_error(self):
        with pytest.raises(ValueError, match="must be \\[warning, critical\\]"):
            get_method("threshold", {"limits": {"cpu": 90}})


class TestComposition:
    """Detectors compose by concatenating their results."""

    def test_results_are_concatenated_in_detector_order(self, make_metric):
        zscore = get_method("rolling_zscore", {"min_samples": 2, "window_size": 5})
        threshold = get_method("threshold")
        for i in range(2):
            zscore.detect([make_metric("memory.usage_percent", 10.0, index=i)])
        batch = [make_metric("memory.usage_percent", 97.0, index=2)]

        anomalies = run_detectors([zscore, threshold], batch)

        assert len(anomalies) == 2
        assert "z=+inf" in anomalies[0].reason
        assert "crossed critical threshold" in anomalies[1].reason
        assert all(a.severity is Severity.CRITICAL for a in anomalies)
