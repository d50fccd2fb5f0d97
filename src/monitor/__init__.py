"""
infrawatch monitor

Wires the acquisition collaborators, converters and detectors into a polling loop.

Usage:
    # Write the default configuration
    python -m src.monitor.run init

    # Start polling
    python -m src.monitor.run run
"""

from .config import ConfigError, MonitorConfig, load_config, load_or_default
from .monitor import InfraMonitor, build_detectors, run_detectors

__all__ = [
    "ConfigError",
    "InfraMonitor",
    "MonitorConfig",
    "build_detectors",
    "load_config",
    "load_or_default",
    "run_detectors",
]

__version__ = "0.1.0"
