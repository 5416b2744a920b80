"""
Tests for the docmirror command line entry point.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from doc_mirror import cli
from doc_mirror import config as config_module
from doc_mirror.config import ENV_VARS, SyncConfig
from doc_mirror.exceptions import ConfigError
from doc_mirror.models import RunResult


def _result(failures=()):
    result = RunResult()
    result.candidates = 3
    result.succeeded = 3 - len(failures)
    for document_id in failures:
        result.record_failure(document_id, "boom")
    return result


@pytest.fixture
def manager():
    manager = MagicMock()
    manager.run.return_value = _result()
    with patch.object(cli.SyncManager, "from_config", return_value=manager):
        yield manager


@pytest.fixture
def load_config():
    with patch.object(cli, "load_config", return_value=SyncConfig()) as mocked:
        yield mocked


class TestMain:

    def test_success(self, load_config, manager):
        assert cli.main([]) == cli.EXIT_OK
        manager.run.assert_called_once_with(None)

    def test_partial_failure(self, load_config, manager):
        manager.run.return_value = _result(failures=["p2-intro"])
        assert cli.main([]) == cli.EXIT_PARTIAL

    def test_skipped_root_is_partial(self, load_config, manager):
        result = RunResult()
        result.record_root_failure("doc1", "timeout")
        manager.run.return_value = result
        assert cli.main([]) == cli.EXIT_PARTIAL

    def test_config_error(self, manager):
        with patch.object(cli, "load_config", side_effect=ConfigError("缺少必要配置: DUST_API_KEY")):
            assert cli.main([]) == cli.EXIT_CONFIG
        manager.run.assert_not_called()

    def test_flags_become_overrides(self, load_config, manager):
        cli.main(["--all", "--max-depth", "2", "--batch-size", "10", "--dry-run", "--config", "x.json"])

        args, kwargs = load_config.call_args
        assert args == ("x.json",)
        overrides = kwargs["overrides"]
        assert overrides["all_docs"] is True
        assert overrides["dry_run"] is True
        assert overrides["max_depth"] == 2
        assert overrides["batch_size"] == 10

    def test_doc_id(self, load_config, manager):
        cli.main(["--doc-id", "8cdu22c-13133"])
        assert load_config.call_args.kwargs["overrides"]["clickup_doc_id"] == "8cdu22c-13133"

    def test_explicit_roots(self, load_config, manager):
        cli.main(["--root", "d1", "--root", "d2"])
        manager.run.assert_called_once_with(["d1", "d2"])

    def test_doc_id_overrides_all_docs_from_file(self, manager, tmp_path, monkeypatch):
        for env in ENV_VARS.values():
            monkeypatch.delenv(env, raising=False)
        monkeypatch.setattr(config_module, "load_dotenv", lambda *a, **k: False)
        path = tmp_path / "sync_config.json"
        path.write_text(json.dumps({
            "clickup_api_key": "pk", "clickup_workspace_id": "ws1", "all_docs": True,
            "dust_api_key": "sk", "dust_workspace_id": "dws", "dust_vault_id": "vlt",
            "dust_datasource_id": "dsrc",
        }), encoding="utf-8")

        with patch.object(cli.SyncManager, "from_config", return_value=manager) as build:
            assert cli.main(["--config", str(path), "--doc-id", "d2"]) == cli.EXIT_OK

        config = build.call_args.args[0]
        assert config.all_docs is False
        assert config.clickup_doc_id == "d2"

    def test_roots_override_all_docs(self, load_config, manager):
        cli.main(["--root", "d1"])
        assert load_config.call_args.kwargs["overrides"]["all_docs"] is False

    def test_doc_id_and_all_exclusive(self):
        with pytest.raises(SystemExit):
            cli.main(["--doc-id", "d1", "--all"])

    def test_check(self):
        with patch.object(cli, "run_health_check", return_value=0) as check:
            assert cli.main(["--check", "--config", "c.json"]) == 0
        check.assert_called_once_with("c.json")
