"""Tests for the health check command."""
from unittest.mock import MagicMock, patch

from doc_mirror import health
from doc_mirror.config import SyncConfig
from doc_mirror.exceptions import ConfigError, TransientFetchError


def _config():
    return SyncConfig(clickup_api_key="pk", clickup_workspace_id="ws1", clickup_doc_id="doc1",
                      dust_api_key="sk", dust_workspace_id="dws", dust_vault_id="vlt",
                      dust_datasource_id="dsrc")


class TestHealthCheck:

    def test_dependencies_installed(self):
        assert health.check_dependencies() is True

    def test_config_error(self):
        with patch.object(health, "load_config", side_effect=ConfigError("缺少必要配置")):
            ok, config = health.check_config("sync_config.json")
        assert ok is False
        assert config is None

    def test_connection(self):
        clickup, dust = MagicMock(), MagicMock()
        clickup.ping.return_value = 200
        dust.ping.return_value = 200
        with patch.object(health, "ClickUpClient", return_value=clickup), \
                patch.object(health, "DustClient", return_value=dust):
            assert health.check_connection(_config()) is True
        clickup.close.assert_called_once()
        dust.close.assert_called_once()

    def test_connection_failure(self):
        clickup, dust = MagicMock(), MagicMock()
        clickup.ping.side_effect = TransientFetchError("timeout")
        dust.ping.return_value = 401
        with patch.object(health, "ClickUpClient", return_value=clickup), \
                patch.object(health, "DustClient", return_value=dust):
            assert health.check_connection(_config()) is False
        clickup.close.assert_called_once()

    def test_run_health_check(self):
        with patch.object(health, "check_config", return_value=(True, _config())), \
                patch.object(health, "check_connection", return_value=True):
            assert health.run_health_check("sync_config.json") == 0

    def test_run_health_check_bad_config(self):
        with patch.object(health, "check_config", return_value=(False, None)):
            assert health.run_health_check("sync_config.json") == 1
