"""Tests for the db-applier command line."""

import json
import logging
import shutil
import textwrap
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from db_applier.cli import EXIT_BAD_CONFIG, EXIT_FAILURES, EXIT_OK, main

requires_sh = pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX shell")

CONFIG = textwrap.dedent(
    """\
    [defaults]
    flavor = "mysql:8.0"
    alter-algorithm = "inplace"

    [environments.production]
    ddl-wrapper = "echo ddl-wrapper {SCHEMA}.{NAME} {TYPE} {CLASS}"
    alter-wrapper = "echo alter-wrapper {SCHEMA}.{TABLE} {TYPE} {CLAUSES}"
    alter-wrapper-min-size = 1

    [environments.broken]
    ddl-wrapper = "echo {SCHEMA} {NOT_A_PLACEHOLDER}"
    """
)

DIFFS = {
    "diffs": [
        {
            "object_class": "TABLE",
            "kind": "ALTER",
            "table": {"name": "rollups", "row_estimate": 0},
            "clauses": [{"sql": "ADD COLUMN `value` bigint(20) DEFAULT NULL"}],
        },
        {
            "object_class": "TABLE",
            "kind": "ALTER",
            "table": {"name": "pageviews", "row_estimate": 1},
            "clauses": [{"sql": "ADD COLUMN `domain` varchar(40) NOT NULL DEFAULT 'skeema.io'"}],
        },
    ]
}

UNSAFE_DIFFS = {
    "diffs": [
        {"object_class": "TABLE", "kind": "DROP", "table": {"name": "widget_counts", "row_estimate": 3}}
    ]
}


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "applier.toml").write_text(CONFIG)
    (tmp_path / "diffs.json").write_text(json.dumps(DIFFS))
    (tmp_path / "unsafe.json").write_text(json.dumps(UNSAFE_DIFFS))
    return tmp_path


def run(workspace, *args: str) -> int:
    return main(["--config", str(workspace / "applier.toml"), *args])


class TestPlan:
    """Verify plan prints statements without running them."""

    def test_prints_wrapper_commands(self, workspace, capsys) -> None:
        code = run(workspace, "plan", "--schema", "analytics", "--diffs", str(workspace / "diffs.json"))

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "\\! echo ddl-wrapper analytics.rollups ALTER TABLE" in out
        assert "\\! echo alter-wrapper analytics.pageviews ALTER 'ADD COLUMN" in out
        assert "2 statements planned" in out

    def test_unsafe_difference_fails(self, workspace, capsys) -> None:
        code = run(workspace, "plan", "--schema", "analytics", "--diffs", str(workspace / "unsafe.json"))

        out = capsys.readouterr().out
        assert code == EXIT_FAILURES
        assert "Apply incomplete" in out
        assert "analytics.widget_counts" in out

    def test_allow_unsafe_flag(self, workspace, capsys) -> None:
        code = run(
            workspace,
            "plan",
            "--schema",
            "analytics",
            "--diffs",
            str(workspace / "unsafe.json"),
            "--allow-unsafe",
        )

        assert code == EXIT_OK
        assert "\\! echo ddl-wrapper analytics.widget_counts DROP TABLE" in capsys.readouterr().out


class TestPush:
    """Verify push runs wrapper commands through the shell."""

    @requires_sh
    def test_runs_wrappers(self, workspace, capsys) -> None:
        code = run(workspace, "push", "--schema", "analytics", "--diffs", str(workspace / "diffs.json"))

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "ddl-wrapper analytics.rollups ALTER TABLE" in out
        assert (
            "alter-wrapper analytics.pageviews ALTER "
            "ADD COLUMN `domain` varchar(40) NOT NULL DEFAULT 'skeema.io'" in out
        )
        assert "2 statements executed" in out


class TestConfigurationErrors:
    """Verify configuration problems exit with status 2."""

    def test_missing_config(self, tmp_path, capsys) -> None:
        code = main(
            ["--config", str(tmp_path / "missing.toml"), "plan", "--schema", "a", "--diffs", "d.json"]
        )
        assert code == EXIT_BAD_CONFIG
        assert "Applier config not found" in capsys.readouterr().out

    def test_unknown_environment(self, workspace, capsys) -> None:
        code = run(
            workspace,
            "plan",
            "-e",
            "staging",
            "--schema",
            "analytics",
            "--diffs",
            str(workspace / "diffs.json"),
        )
        assert code == EXIT_BAD_CONFIG
        assert "staging" in capsys.readouterr().out

    def test_missing_diff_file(self, workspace) -> None:
        code = run(workspace, "plan", "--schema", "analytics", "--diffs", str(workspace / "nope.json"))
        assert code == EXIT_BAD_CONFIG

    def test_invalid_diff_file(self, workspace) -> None:
        (workspace / "bad.json").write_text('{"diffs": [{"object_class": "VIEW"}]}')
        code = run(workspace, "plan", "--schema", "analytics", "--diffs", str(workspace / "bad.json"))
        assert code == EXIT_BAD_CONFIG

    def test_invalid_template(self, workspace, capsys) -> None:
        code = run(
            workspace,
            "plan",
            "-e",
            "broken",
            "--schema",
            "analytics",
            "--diffs",
            str(workspace / "diffs.json"),
        )
        assert code == EXIT_BAD_CONFIG
        assert "NOT_A_PLACEHOLDER" in capsys.readouterr().out

    def test_subcommand_required(self) -> None:
        with pytest.raises(SystemExit):
            main([])


class TestFlavorHandling:
    """Verify flavor detection failures and unknown-flavor planning."""

    NO_FLAVOR = textwrap.dedent(
        """\
        [environments.production]
        alter-algorithm = "inplace"
        """
    )

    @pytest.fixture
    def no_flavor(self, workspace):
        (workspace / "applier.toml").write_text(self.NO_FLAVOR)
        return workspace

    def test_plan_warns_about_unknown_flavor(self, no_flavor, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="db_applier.cli"):
            code = run(no_flavor, "plan", "--schema", "analytics", "--diffs", str(no_flavor / "diffs.json"))

        assert code == EXIT_OK
        assert "No flavor configured for production" in caplog.text

    def test_push_reports_unreachable_server(self, no_flavor, capsys) -> None:
        refused = OperationalError("SELECT VERSION()", {}, ConnectionRefusedError("Connection refused"))
        with patch("db_applier.cli.detect_flavor", AsyncMock(side_effect=refused)):
            code = run(no_flavor, "push", "--schema", "analytics", "--diffs", str(no_flavor / "diffs.json"))

        out = capsys.readouterr().out
        assert code == EXIT_BAD_CONFIG
        assert "cannot detect server flavor" in out
        assert "ConnectionRefusedError" in out

    def test_invalid_configured_flavor(self, workspace, capsys) -> None:
        (workspace / "applier.toml").write_text('[environments.production]\nflavor = "mysql"\n')
        code = run(workspace, "plan", "--schema", "analytics", "--diffs", str(workspace / "diffs.json"))

        assert code == EXIT_BAD_CONFIG
        assert "Unable to parse server flavor" in capsys.readouterr().out
