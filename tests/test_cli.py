"""Tests de la CLI y de la configuración."""

from unittest.mock import patch

import pytest

from dqi_aggregator import cli
from dqi_aggregator.common.config import get_settings


class TestCLI:

    def test_parse_error_exits_before_network(self):
        with patch.object(cli, "start_receiver") as start:
            with pytest.raises(SystemExit) as exc:
                cli.main(["--broker-port", "not-a-port"])

        assert exc.value.code != 0
        start.assert_not_called()

    def test_invalid_window_config_exits_before_network(self, monkeypatch, tmp_path):
        monkeypatch.setenv("AGGREGATOR_ENV_FILE", str(tmp_path / "missing.env"))
        monkeypatch.setenv("DQI_WINDOW_SIZE", "-5")

        with patch.object(cli, "start_receiver") as start:
            with pytest.raises(SystemExit) as exc:
                cli.main([])

        assert exc.value.code == 2
        start.assert_not_called()

    def test_visualize_flag_defaults_off(self):
        args = cli.build_parser().parse_args([])

        assert args.visualize is False
        assert cli.build_parser().parse_args(["-v"]).visualize is True

    def test_connection_failure_returns_one(self):
        with patch.object(cli, "start_receiver", return_value=False) as start, \
                patch.object(cli, "stop_receiver") as stop:
            code = cli.main(["--broker-host", "gateway.local"])

        assert code == 1
        assert start.call_args[0][0].mqtt_host == "gateway.local"
        stop.assert_called_once()


class TestSettings:

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("AGGREGATOR_ENV_FILE", str(tmp_path / "missing.env"))
        monkeypatch.setenv("DQI_WINDOW_SIZE", "100")
        monkeypatch.setenv("DQI_WINDOW_OFFSET", "5")
        monkeypatch.setenv("MQTT_BROKER_PORT", "1884")

        settings = get_settings()

        assert settings.window.size == 100
        assert settings.window.boundary(0) == 105
        assert settings.mqtt_port == 1884
        assert settings.self_estimate_msg_id == 3000

    def test_env_file_loaded_without_overriding_environment(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("MQTT_TOPIC_PREFIX=lab\nMQTT_BROKER_HOST=from-file\n")
        monkeypatch.setenv("AGGREGATOR_ENV_FILE", str(env_file))
        monkeypatch.setenv("MQTT_BROKER_HOST", "from-env")
        # setenv + delenv: monkeypatch restaura lo que cargue el .env
        monkeypatch.setenv("MQTT_TOPIC_PREFIX", "unset")
        monkeypatch.delenv("MQTT_TOPIC_PREFIX")

        settings = get_settings()

        assert settings.topic_prefix == "lab"
        assert settings.mqtt_host == "from-env"

    def test_invalid_window_size_rejected(self, monkeypatch, tmp_path):
        monkeypatch.setenv("AGGREGATOR_ENV_FILE", str(tmp_path / "missing.env"))
        monkeypatch.setenv("DQI_WINDOW_SIZE", "0")

        with pytest.raises(ValueError):
            get_settings()
