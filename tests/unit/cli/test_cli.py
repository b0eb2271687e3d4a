# tests/unit/cli/test_cli.py
"""Tests for the globalconf CLI.

Commands run against a throwaway SQLite database configured through a
settings file in tmp_path.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from globalconf.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_root_logging() -> Iterator[None]:
    """The CLI points the root handler at the runner's stream; detach it afterwards."""
    yield
    logging.getLogger().handlers = []


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(f"database:\n  url: sqlite:///{tmp_path / 'state' / 'globalconf.db'}\n")
    return path


def _invoke(*args: str):  # type: ignore[no-untyped-def]
    return runner.invoke(app, ["--no-dotenv", *args])


class TestCLIBasics:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "globalconf version" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("reconcile", "show", "set-option", "unset-option", "add-worker", "remove-worker"):
            assert command in result.stdout

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        result = _invoke("reconcile", "--settings", str(tmp_path / "missing.yaml"))
        assert result.exit_code == 1
        assert "Settings file not found" in result.output

    def test_invalid_settings(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("database:\n  url: not-a-url\n")

        result = _invoke("show", "-s", str(path))

        assert result.exit_code == 1
        assert "database.url" in result.output


class TestReconcileCommand:
    def test_first_and_second_run(self, settings_file: Path) -> None:
        added = _invoke("add-worker", "w1", "-c", "fdb-timestamp=true", "-e", "geneve:192.0.2.1", "-s", str(settings_file))
        assert added.exit_code == 0, added.output
        assert "Added worker w1" in added.output

        first = _invoke("reconcile", "-s", str(settings_file))
        assert first.exit_code == 0, first.output
        assert "Reconciled: 4 store write(s)" in first.output
        assert "Features not supported fleet-wide:" in first.output
        assert "ct_no_masked_label" in first.output
        assert "Internal version updated to 24.03.90-20.33.0-53.3" in first.output

        second = _invoke("reconcile", "-s", str(settings_file))
        assert second.exit_code == 0, second.output
        assert "Reconciled: 0 store write(s)" in second.output
        assert "Internal version updated" not in second.output

    def test_show_after_reconcile(self, settings_file: Path) -> None:
        _invoke("add-worker", "w1", "-e", "vxlan:192.0.2.1", "-s", str(settings_file))
        _invoke("reconcile", "-s", str(settings_file))

        result = _invoke("show", "-s", str(settings_file))

        assert result.exit_code == 0, result.output
        document = yaml.safe_load(result.stdout)
        assert document["intent"]["options"]["max_tunid"] == "4079"
        assert document["state"]["options"]["arp_ns_explicit_output"] == "true"
        assert document["features"]["fdb_timestamp"] is False
        assert document["workers"] == [
            {"name": "w1", "remote": False, "other_config": {}, "encaps": ["vxlan:192.0.2.1"]}
        ]

    def test_show_reports_all_features_when_worker_capabilities_are_ignored(self, settings_file: Path) -> None:
        _invoke("set-option", "ignore_chassis_features", "true", "-s", str(settings_file))
        _invoke("add-worker", "w1", "-s", str(settings_file))

        result = _invoke("show", "-s", str(settings_file))

        assert result.exit_code == 0, result.output
        document = yaml.safe_load(result.stdout)
        assert all(document["features"].values())

    def test_show_empty_database(self, settings_file: Path) -> None:
        result = _invoke("show", "-s", str(settings_file))

        assert result.exit_code == 0, result.output
        document = yaml.safe_load(result.stdout)
        assert document["intent"] is None
        assert document["state"] is None
        assert document["workers"] == []


class TestOptionCommands:
    def test_set_and_unset(self, settings_file: Path) -> None:
        result = _invoke("set-option", "ignore_lsp_down", "true", "-s", str(settings_file))
        assert result.exit_code == 0, result.output
        assert "Set ignore_lsp_down=true" in result.output

        shown = yaml.safe_load(_invoke("show", "-s", str(settings_file)).stdout)
        assert shown["intent"]["options"] == {"ignore_lsp_down": "true"}

        removed = _invoke("unset-option", "ignore_lsp_down", "-s", str(settings_file))
        assert removed.exit_code == 0
        assert "Removed ignore_lsp_down" in removed.output

        again = _invoke("unset-option", "ignore_lsp_down", "-s", str(settings_file))
        assert again.exit_code == 0
        assert "ignore_lsp_down was not set" in again.output

    def test_reconcile_keeps_operator_option(self, settings_file: Path) -> None:
        _invoke("set-option", "fdb_removal_limit", "50", "-s", str(settings_file))
        _invoke("reconcile", "-s", str(settings_file))

        shown = yaml.safe_load(_invoke("show", "-s", str(settings_file)).stdout)

        assert shown["intent"]["options"]["fdb_removal_limit"] == "50"
        assert shown["state"]["options"]["fdb_removal_limit"] == "50"


class TestWorkerCommands:
    def test_duplicate_worker(self, settings_file: Path) -> None:
        _invoke("add-worker", "w1", "-s", str(settings_file))
        result = _invoke("add-worker", "w1", "-s", str(settings_file))
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_malformed_capability(self, settings_file: Path) -> None:
        result = _invoke("add-worker", "w1", "-c", "no-separator", "-s", str(settings_file))
        assert result.exit_code == 1
        assert "--capability expects" in result.output

    def test_malformed_encap(self, settings_file: Path) -> None:
        result = _invoke("add-worker", "w1", "-e", "geneve", "-s", str(settings_file))
        assert result.exit_code == 1
        assert "--encap expects" in result.output

    def test_remove_worker(self, settings_file: Path) -> None:
        _invoke("add-worker", "w1", "-s", str(settings_file))

        result = _invoke("remove-worker", "w1", "-s", str(settings_file))
        assert result.exit_code == 0
        assert "Removed worker w1" in result.output

        missing = _invoke("remove-worker", "w1", "-s", str(settings_file))
        assert missing.exit_code == 1
        assert "not found" in missing.output


class TestLoggingSettings:
    def test_settings_file_selects_json_logs(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text(
            f"database:\n  url: sqlite:///{tmp_path / 'globalconf.db'}\nlogging:\n  level: INFO\n  json_output: true\n"
        )

        result = _invoke("reconcile", "-s", str(path))

        assert result.exit_code == 0, result.output
        assert '"event": "Created intent record"' in result.output
