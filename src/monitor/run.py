"""
infrawatch - CLI Entry Point
Polls host and cloud telemetry and flags anomalies.

Usage:
    python -m src.monitor.run <command> [options]
"""

import argparse
import os
import sys

import structlog

from src.cloud.aws import AWSProvider
from src.core.logger import LOG_LEVELS, setup_logging
from src.detection.methods import list_methods
from src.system.collector import PsutilCollector

from .config import ConfigError, MonitorConfig, init_config, load_config, load_or_default
from .monitor import InfraMonitor, build_detectors, log_anomaly
from .replay import load_metrics_csv, replay

logger = structlog.get_logger(__name__)


def parse_arguments(argv: list[str] | None = None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        prog="infrawatch",
        description="Cloud and host infrastructure anomaly detection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        # Write a default configuration file
        python -m src.monitor.run init

        # Validate configuration and cloud connectivity
        python -m src.monitor.run check

        # Poll and detect for 10 minutes
        python -m src.monitor.run run --duration 600

        # Replay exported metrics through two detectors
        python -m src.monitor.run replay history.csv --method rolling_zscore threshold
        """,
    )

    parser.add_argument(
        "-c",
        "--config",
        default=os.getenv("INFRAWATCH_CONFIG"),
        help="Path to the configuration file",
    )
    parser.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Poll metrics and detect anomalies")
    run_parser.add_argument("--duration", type=int, help="Duration to run in seconds")
    run_parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")

    subparsers.add_parser("check", help="Validate config and cloud provider connectivity")

    init_parser = subparsers.add_parser("init", help="Write the default configuration")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    replay_parser = subparsers.add_parser("replay", help="Run a CSV of metrics through detectors")
    replay_parser.add_argument("csv", help="CSV file with name,value,timestamp columns")
    replay_parser.add_argument(
        "--method",
        nargs="+",
        choices=list_methods(),
        help="Detection methods (default: those in the configuration)",
    )

    return parser.parse_args(argv)


def build_monitor(config: MonitorConfig) -> InfraMonitor:
    """Wire collaborators from configuration"""
    collector = None
    if config.system.enabled:
        collector = PsutilCollector(
            collect_memory=config.system.collect_memory,
            collect_disk=config.system.collect_disk,
            collect_processes=config.system.collect_processes,
            top_n=config.system.top_processes,
        )

    provider = None
    if config.aws.enabled:
        provider = AWSProvider(region=config.aws.region, profile_name=config.aws.profile_name)

    return InfraMonitor(config, collector=collector, provider=provider)


def command_run(args) -> int:
    config = load_or_default(args.config)
    monitor = build_monitor(config)

    if args.once:
        anomalies = monitor.run_cycle()
        logger.info("Single cycle completed", anomalies=len(anomalies))
    else:
        monitor.run(duration_seconds=args.duration)
    return 0


def command_check(args) -> int:
    config = load_config(args.config)
    build_detectors(config)
    logger.info(
        "Configuration valid",
        system=config.system.enabled,
        aws=config.aws.enabled,
        methods=config.detection.methods,
    )

    if not config.aws.enabled:
        return 0

    provider = AWSProvider(region=config.aws.region, profile_name=config.aws.profile_name)
    status = provider.verify_connection()
    if not status.connected:
        logger.error("Cloud provider not reachable", region=status.region)
        return 1

    if config.aws.collect_cost and not status.permissions.cost_explorer_read:
        logger.warning("Cost collection enabled but Cost Explorer is not readable")

    instances = provider.discover_instances(list(config.aws.tag_filters.items()))
    logger.info(
        "Cloud provider reachable",
        region=status.region,
        instances=len(instances),
    )
    return 0


def command_init(args) -> int:
    path = init_config(args.config, force=args.force)
    print(f"Configuration written to {path}")
    return 0


def command_replay(args) -> int:
    config = load_or_default(args.config)
    methods = args.method or config.detection.methods
    detectors = build_detectors(config, methods)

    metrics = load_metrics_csv(args.csv)
    anomalies = replay(metrics, detectors)
    for anomaly in anomalies:
        log_anomaly(anomaly)

    print(f"{len(metrics)} metrics replayed, {len(anomalies)} anomalies detected")
    return 0


COMMANDS = {
    "run": command_run,
    "check": command_check,
    "init": command_init,
    "replay": command_replay,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point"""
    args = parse_arguments(argv)

    setup_logging(
        level=LOG_LEVELS.get(args.log_level.upper(), LOG_LEVELS["INFO"]), json=args.json_logs
    )

    try:
        return COMMANDS[args.command](args)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except ConfigError as e:
        logger.error("Invalid configuration", error=str(e))
        return 1

    except Exception as e:
        logger.error("Command failed", command=args.command, error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
