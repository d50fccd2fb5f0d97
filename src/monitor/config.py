"""
Configuration for the infrawatch monitor.

Settings live in a TOML file (default: $INFRAWATCH_CONFIG, else
$XDG_CONFIG_HOME/infrawatch/config.toml). A handful of environment variables,
optionally provided through a .env file, override the file.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
from dotenv import load_dotenv

logger = structlog.get_logger(__name__)

load_dotenv()

APP_NAME = "infrawatch"


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or is invalid"""


@dataclass
class AWSSettings:
    """Cloud acquisition settings"""

    enabled: bool = False
    region: str = "us-east-1"
    profile_name: str | None = None
    instance_ids: list[str] = field(default_factory=list)  # Empty = discover all
    tag_filters: dict[str, str] = field(default_factory=dict)
    lookback_minutes: int = 15
    collect_cost: bool = False
    cost_lookback_days: int = 2


@dataclass
class MetricsSettings:
    """Which provider metrics are requested for each instance"""

    instance_metrics: list[str] = field(
        default_factory=lambda: ["CPUUtilization", "NetworkIn", "NetworkOut"]
    )


@dataclass
class SystemSettings:
    """Local host acquisition settings"""

    enabled: bool = True
    collect_memory: bool = True
    collect_disk: bool = True
    collect_processes: bool = True
    top_processes: int = 5


@dataclass
class DetectionSettings:
    """Detection methods to run and their per-method configuration"""

    methods: list[str] = field(default_factory=lambda: ["rolling_zscore"])
    method_configs: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass
class MonitorConfig:
    """Top-level configuration"""

    aws: AWSSettings = field(default_factory=AWSSettings)
    metrics: MetricsSettings = field(default_factory=MetricsSettings)
    system: SystemSettings = field(default_factory=SystemSettings)
    detection: DetectionSettings = field(default_factory=DetectionSettings)
    poll_interval_seconds: float = 60.0


DEFAULT_CONFIG_TOML = """\
# infrawatch configuration

# Seconds between polling cycles
poll_interval_seconds = 60

[aws]
enabled = false
region = "us-east-1"
# profile_name = "default"
# instance_ids = ["i-0123456789abcdef0"]   # empty = every instance
lookback_minutes = 15
collect_cost = false
cost_lookback_days = 2

[aws.tag_filters]
# Environment = "production"

[metrics]
instance_metrics = ["CPUUtilization", "NetworkIn", "NetworkOut"]

[system]
enabled = true
collect_memory = true
collect_disk = true
collect_processes = true
top_processes = 5

[detection]
methods = ["rolling_zscore"]

[detection.rolling_zscore]
window_size = 20
min_samples = 5
warning_z = 2.0
critical_z = 3.0

[detection.threshold.limits]
"memory.usage_percent" = [85.0, 95.0]
"disk.*.usage_percent" = [85.0, 95.0]
"""


def get_default_path() -> Path:
    """Resolve the default configuration file location"""
    explicit = os.getenv("INFRAWATCH_CONFIG")
    if explicit:
        return Path(explicit).expanduser()

    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base).expanduser() / APP_NAME / "config.toml"


def _build_section(cls, data: Any, section: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section [{section}] must be a table")
    try:
        return cls(**data)
    except TypeError as e:
        raise ConfigError(f"Invalid keys in section [{section}]: {e}") from e


def _build_detection(data: Any) -> DetectionSettings:
    if data is None:
        return DetectionSettings()
    if not isinstance(data, dict):
        raise ConfigError("Section [detection] must be a table")

    data = dict(data)
    methods = data.pop("methods", None)
    method_configs = {key: value for key, value in data.items() if isinstance(value, dict)}
    unknown = sorted(key for key, value in data.items() if not isinstance(value, dict))
    if unknown:
        raise ConfigError(f"Invalid keys in section [detection]: {', '.join(unknown)}")

    settings = DetectionSettings(method_configs=method_configs)
    if methods is not None:
        if not isinstance(methods, list) or not all(isinstance(m, str) for m in methods):
            raise ConfigError("detection.methods must be a list of method names")
        settings.methods = methods
    return settings


def parse_config(data: dict[str, Any]) -> MonitorConfig:
    """Build a MonitorConfig from a parsed TOML document"""
    known = {"aws", "metrics", "system", "detection", "poll_interval_seconds"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    config = MonitorConfig(
        aws=_build_section(AWSSettings, data.get("aws"), "aws"),
        metrics=_build_section(MetricsSettings, data.get("metrics"), "metrics"),
        system=_build_section(SystemSettings, data.get("system"), "system"),
        detection=_build_detection(data.get("detection")),
    )
    if "poll_interval_seconds" in data:
        config.poll_interval_seconds = float(data["poll_interval_seconds"])
    return config


def apply_env_overrides(config: MonitorConfig) -> MonitorConfig:
    """Apply environment variable overrides in place"""
    if region := os.getenv("AWS_REGION"):
        config.aws.region = region
    if profile := os.getenv("AWS_PROFILE"):
        config.aws.profile_name = profile
    if interval := os.getenv("INFRAWATCH_POLL_INTERVAL"):
        try:
            config.poll_interval_seconds = float(interval)
        except ValueError as e:
            raise ConfigError(f"INFRAWATCH_POLL_INTERVAL is not a number: {interval}") from e
    return config


def load_config(path: Path | str | None = None) -> MonitorConfig:
    """Load configuration from a TOML file

    Args:
        path: Explicit file path. Defaults to get_default_path()

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    config_path = Path(path) if path is not None else get_default_path()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config from {config_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config from {config_path}: {e}") from e

    config = apply_env_overrides(parse_config(data))
    logger.info("Configuration loaded", path=str(config_path))
    return config


def load_or_default(path: Path | str | None = None) -> MonitorConfig:
    """Load configuration, falling back to defaults when no file exists

    An explicitly given path must exist.
    """
    if path is None and not get_default_path().exists():
        logger.info("No config file found, using defaults", path=str(get_default_path()))
        return apply_env_overrides(MonitorConfig())
    return load_config(path)


def init_config(path: Path | str | None = None, force: bool = False) -> Path:
    """Write the default configuration file and return its path"""
    config_path = Path(path) if path is not None else get_default_path()

    if config_path.exists() and not force:
        raise ConfigError(f"Config file already exists: {config_path} (use --force)")

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_TOML, encoding="utf-8")
    logger.info("Default configuration written", path=str(config_path))
    return config_path
