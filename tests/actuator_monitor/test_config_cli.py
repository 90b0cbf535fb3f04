"""
Tests for configuration loading and the command-line entry point.
"""

import json
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from actuator_monitor import cli
from actuator_monitor.config import ActuatorConfig, get_config, set_config
from actuator_monitor.exceptions import ConfigurationError
from actuator_monitor.models import PollSnapshot
from actuator_monitor.normalizer import normalize_metrics


ENV_VARS = (
    "ACTUATOR_BASE_URL",
    "ACTUATOR_TIMEOUT",
    "ACTUATOR_POLL_INTERVAL",
    "ACTUATOR_FETCH_HEALTH",
    "ACTUATOR_FETCH_INFO",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate tests from the caller's environment and the global config."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cli, "load_dotenv", lambda: False)
    set_config(None)
    yield
    set_config(None)


# ============================================================
# CONFIG
# ============================================================

class TestActuatorConfig:
    """Tests for ActuatorConfig."""

    def test_defaults_are_valid(self):
        assert ActuatorConfig().validate() == []

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ACTUATOR_BASE_URL", "https://orders.internal:9090")
        monkeypatch.setenv("ACTUATOR_TIMEOUT", "2.5")
        monkeypatch.setenv("ACTUATOR_POLL_INTERVAL", "30")
        monkeypatch.setenv("ACTUATOR_FETCH_INFO", "false")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = ActuatorConfig.from_env()

        assert config.base_url == "https://orders.internal:9090"
        assert config.timeout_seconds == 2.5
        assert config.poll_interval_seconds == 30
        assert config.fetch_health is True
        assert config.fetch_info is False
        assert config.log_level == "DEBUG"

    def test_from_env_invalid_number(self, monkeypatch):
        monkeypatch.setenv("ACTUATOR_POLL_INTERVAL", "often")

        with pytest.raises(ConfigurationError):
            ActuatorConfig.from_env()

    def test_from_yaml_layers_over_base(self, tmp_path):
        path = tmp_path / "monitor.yaml"
        path.write_text("base_url: http://billing:8081\npoll_interval_seconds: 5\n")
        base = ActuatorConfig(timeout_seconds=3.0)

        config = ActuatorConfig.from_yaml(path, base=base)

        assert config.base_url == "http://billing:8081"
        assert config.poll_interval_seconds == 5
        assert config.timeout_seconds == 3.0

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ActuatorConfig.from_yaml(tmp_path / "absent.yaml")

    def test_from_yaml_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            ActuatorConfig.from_yaml(path)

    def test_validate_reports_every_problem(self):
        config = ActuatorConfig(
            base_url="localhost:8080",
            timeout_seconds=0,
            poll_interval_seconds=0,
            log_level="LOUD",
            log_format="xml",
        )

        assert len(config.validate()) == 5

    def test_update_ignores_none_and_unknown(self):
        config = ActuatorConfig()
        config.update({"base_url": None, "colour": "blue", "fetch_info": False})

        assert config.base_url == "http://localhost:8080"
        assert config.fetch_info is False
        assert not hasattr(config, "colour")

    def test_update_coerces_declared_types(self):
        config = ActuatorConfig()
        config.update({"timeout_seconds": "2.5", "poll_interval_seconds": 5.0, "fetch_info": "off"})

        assert config.timeout_seconds == 2.5
        assert config.poll_interval_seconds == 5
        assert isinstance(config.poll_interval_seconds, int)
        assert config.fetch_info is False

    @pytest.mark.parametrize("name,value", [
        ("timeout_seconds", "fast"),
        ("timeout_seconds", float("inf")),
        ("poll_interval_seconds", 2.5),
        ("poll_interval_seconds", True),
        ("fetch_health", "maybe"),
        ("base_url", ["http://a:1"]),
    ])
    def test_update_rejects_wrong_type(self, name, value):
        with pytest.raises(ConfigurationError) as exc_info:
            ActuatorConfig().update({name: value})

        assert exc_info.value.config_key == name

    def test_update_never_replaces_methods(self):
        config = ActuatorConfig()
        config.update({"validate": "oops", "to_dict": 1})

        assert config.validate() == []
        assert config.to_dict()["base_url"] == "http://localhost:8080"

    def test_from_yaml_wrong_type(self, tmp_path):
        path = tmp_path / "monitor.yaml"
        path.write_text("timeout_seconds: fast\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ActuatorConfig.from_yaml(path)

        assert exc_info.value.config_key == "timeout_seconds"

    def test_global_config(self, monkeypatch):
        monkeypatch.setenv("ACTUATOR_BASE_URL", "http://env:1234")

        assert get_config().base_url == "http://env:1234"

        custom = ActuatorConfig(base_url="http://custom:1")
        set_config(custom)
        assert get_config() is custom


# ============================================================
# CLI
# ============================================================

def make_snapshot(with_metrics=True):
    return PollSnapshot(
        base_url="http://app:8080",
        polled_at=datetime(2024, 1, 1, 12, 0, 0),
        metrics=normalize_metrics(b'{"counter.status.200.root": 2}') if with_metrics else None,
    )


class TestCli:
    """Tests for the command-line entry point."""

    def test_build_config_precedence(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ACTUATOR_BASE_URL", "http://env:1")
        monkeypatch.setenv("ACTUATOR_TIMEOUT", "4")
        path = tmp_path / "monitor.yaml"
        path.write_text("base_url: http://yaml:2\npoll_interval_seconds: 7\n")

        args = cli.create_parser().parse_args(
            ["--config", str(path), "--interval", "9", "--skip-health"]
        )
        config = cli.build_config(args)

        assert config.base_url == "http://yaml:2"
        assert config.timeout_seconds == 4.0
        assert config.poll_interval_seconds == 9
        assert config.fetch_health is False
        assert config.fetch_info is True

    def test_print_snapshot_writes_json_line(self, capsys):
        cli.print_snapshot(make_snapshot())

        out = capsys.readouterr().out
        assert out.endswith("\n")
        data = json.loads(out)
        assert data["metrics"]["status_count"] == {"200": {"root": 2.0}}
        assert data["polled_at"] == "2024-01-01T12:00:00"

    def test_invalid_config_exits_1(self, capsys):
        assert cli.main(["--url", "not-a-url", "--once"]) == 1
        assert "base_url" in capsys.readouterr().err

    def test_yaml_with_wrong_type_exits_1(self, tmp_path, capsys):
        path = tmp_path / "monitor.yaml"
        path.write_text("timeout_seconds: fast\n")

        assert cli.main(["--config", str(path), "--url", "http://app:8080", "--once"]) == 1
        assert "timeout_seconds" in capsys.readouterr().err

    def test_once_success(self):
        poller = MagicMock()
        poller.poll_once = AsyncMock(return_value=make_snapshot())
        poller.publish = AsyncMock()
        poller.close = AsyncMock()

        with patch.object(cli, "ActuatorPoller", return_value=poller) as poller_cls, \
                patch.object(cli, "setup_logging"):
            exit_code = cli.main(["--url", "http://app:8080", "--once"])

        assert exit_code == 0
        config = poller_cls.call_args.kwargs["config"]
        assert config.base_url == "http://app:8080"
        poller.publish.assert_awaited_once()
        poller.close.assert_awaited_once()

    def test_once_without_metrics_exits_1(self):
        poller = MagicMock()
        poller.poll_once = AsyncMock(return_value=make_snapshot(with_metrics=False))
        poller.publish = AsyncMock()
        poller.close = AsyncMock()

        with patch.object(cli, "ActuatorPoller", return_value=poller), \
                patch.object(cli, "setup_logging"):
            assert cli.main(["--url", "http://app:8080", "--once"]) == 1
