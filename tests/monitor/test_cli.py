"""
Tests for the infrawatch command line.
"""

from unittest.mock import MagicMock, patch

import pytest

from src.cloud.models import ConnectionStatus, PermissionsCheck
from src.monitor.config import load_config
from src.monitor.run import build_monitor, main, parse_arguments


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the CLI away from real config files and credentials."""
    for name in ("INFRAWATCH_CONFIG", "AWS_REGION", "AWS_PROFILE", "INFRAWATCH_POLL_INTERVAL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        "poll_interval_seconds = 0\n"
        "[system]\nenabled = false\n"
        "[aws]\nenabled = true\nregion = \"eu-west-1\"\n",
        encoding="utf-8",
    )
    return path


class TestParseArguments:
    """Tests for argument parsing."""

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_arguments([])

    def test_replay_methods(self):
        args = parse_arguments(["replay", "history.csv", "--method", "rolling_zscore", "threshold"])

        assert args.command == "replay"
        assert args.method == ["rolling_zscore", "threshold"]

    def test_unknown_method_rejected(self):
        with pytest.raises(SystemExit):
            parse_arguments(["replay", "history.csv", "--method", "prophet"])


class TestInitCommand:
    """Tests for `infrawatch init`."""

    def test_writes_config(self, tmp_path, capsys):
        path = tmp_path / "new" / "config.toml"

        assert main(["--config", str(path), "init"]) == 0
        assert path.exists()
        assert str(path) in capsys.readouterr().out

    def test_existing_file_is_config_error(self, config_path):
        assert main(["--config", str(config_path), "init"]) == 1


class TestCheckCommand:
    """Tests for `infrawatch check`."""

    @patch("src.monitor.run.AWSProvider")
    def test_reachable_provider(self, mock_provider_cls, config_path):
        provider = mock_provider_cls.return_value
        provider.verify_connection.return_value = ConnectionStatus(
            connected=True,
            region="eu-west-1",
            permissions=PermissionsCheck(metrics_monitor_read=True, instance_describe=True),
        )
        provider.discover_instances.return_value = []

        assert main(["--config", str(config_path), "check"]) == 0
        mock_provider_cls.assert_called_once_with(region="eu-west-1", profile_name=None)

    @patch("src.monitor.run.AWSProvider")
    def test_unreachable_provider(self, mock_provider_cls, config_path):
        mock_provider_cls.return_value.verify_connection.return_value = ConnectionStatus(
            connected=False, region="eu-west-1", permissions=PermissionsCheck()
        )

        assert main(["--config", str(config_path), "check"]) == 1

    def test_missing_config(self, tmp_path):
        assert main(["--config", str(tmp_path / "absent.toml"), "check"]) == 1

    def test_unknown_method_in_config(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[detection]\nmethods = ["prophet"]\n', encoding="utf-8")

        assert main(["--config", str(path), "check"]) == 1

    @patch("src.monitor.run.logger")
    def test_invalid_method_settings_reported_as_config_error(self, mock_logger, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[detection.rolling_zscore]\nwindow = 10\n", encoding="utf-8")

        assert main(["--config", str(path), "check"]) == 1
        assert mock_logger.error.call_args.args[0] == "Invalid configuration"
        assert "rolling_zscore" in mock_logger.error.call_args.kwargs["error"]


class TestRunCommand:
    """Tests for `infrawatch run`."""

    @patch("src.monitor.run.AWSProvider")
    def test_single_cycle(self, mock_provider_cls, config_path):
        provider = mock_provider_cls.return_value
        provider.name = "aws"
        provider.fetch_instance_metrics.return_value = []

        assert main(["--config", str(config_path), "run", "--once"]) == 0
        provider.fetch_instance_metrics.assert_called_once()

    def test_build_monitor_wires_collector(self, config_path):
        config = load_config(config_path)
        config.system.enabled = True
        config.aws.enabled = False

        monitor = build_monitor(config)

        assert monitor.collector is not None
        assert monitor.provider is None


class TestReplayCommand:
    """Tests for `infrawatch replay`."""

    def test_replay_counts(self, tmp_path, capsys):
        csv_path = tmp_path / "history.csv"
        rows = ["name,value,timestamp"]
        rows += [f"memory.usage_percent,{v},2025-10-02T12:0{i}:00Z" for i, v in enumerate([50, 97])]
        csv_path.write_text("\n".join(rows) + "\n", encoding="utf-8")

        code = main(["replay", str(csv_path), "--method", "threshold"])

        assert code == 0
        assert "2 metrics replayed, 1 anomalies detected" in capsys.readouterr().out

    def test_missing_csv(self, tmp_path):
        assert main(["replay", str(tmp_path / "absent.csv")]) == 1


def test_keyboard_interrupt_exit_code():
    with patch("src.monitor.run.COMMANDS", {"init": MagicMock(side_effect=KeyboardInterrupt)}):
        assert main(["init"]) == 0
