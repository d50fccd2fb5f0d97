"""
Anomaly detection methods registry and factory.
"""

from .base import AnomalyDetector
from .rolling_zscore import RollingZScoreConfig, RollingZScoreDetector
from .threshold import ThresholdConfig, ThresholdDetector

# Registry of available methods
METHOD_REGISTRY = {
    "rolling_zscore": RollingZScoreDetector,
    "threshold": ThresholdDetector,
}


def get_method(method_name: str, config: dict | None = None) -> AnomalyDetector:
    """Factory to create an anomaly detection method

    Args:
        method_name: Name of the method (e.g., 'rolling_zscore')
        config: Configuration dict for the method

    Returns:
        Instance of the detection method

    Raises:
        ValueError: If method_name is not registered
    """
    if method_name not in METHOD_REGISTRY:
        available = ", ".join(METHOD_REGISTRY.keys())
        raise ValueError(f"Unknown method '{method_name}'. Available methods: {available}")

    method_class = METHOD_REGISTRY[method_name]
    return method_class(config or {})


def list_methods() -> list[str]:
    """List all available detection methods"""
    return list(METHOD_REGISTRY.keys())


__all__ = [
    "AnomalyDetector",
    "METHOD_REGISTRY",
    "RollingZScoreConfig",
    "RollingZScoreDetector",
    "ThresholdConfig",
    "ThresholdDetector",
    "get_method",
    "list_methods",
]
