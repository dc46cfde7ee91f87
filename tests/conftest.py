"""Shared fakes for applier tests.

``FakeRunner`` and ``FakeConnector`` stand in for the two side-effecting
collaborators of a ``TargetContext`` so tests never spawn processes or
open connections unless they mean to.
"""

from collections.abc import Mapping
from unittest.mock import AsyncMock

import pytest

from db_applier.applier.shellout import ShellResult
from db_applier.applier.target import ConnectionParams, Flavor, TargetContext
from db_applier.schema.diff import AlterClause, DatabaseDiff, TableDiff
from db_applier.schema.models import DiffKind, TableRef


class FakeRunner:
    """Records commands and returns a canned result."""

    def __init__(self, exit_code: int = 0, output: str = "") -> None:
        self.exit_code = exit_code
        self.output = output
        self.commands: list[str] = []

    async def run(self, command: str) -> ShellResult:
        self.commands.append(command)
        return ShellResult(exit_code=self.exit_code, output=self.output)


class FakeConnector:
    """Hands out one shared AsyncMock client and records connect() calls."""

    def __init__(self) -> None:
        self.client = AsyncMock()
        self.calls: list[tuple[str, dict[str, str]]] = []

    def connect(self, schema_name: str, session_variables: Mapping[str, str] | None = None):
        self.calls.append((schema_name, dict(session_variables or {})))
        return self.client


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def make_target(connector: FakeConnector, runner: FakeRunner):
    """Factory for TargetContext with fakes; keyword overrides win."""

    def _make(**overrides) -> TargetContext:
        values = {
            "schema_name": "analytics",
            "connector": connector,
            "runner": runner,
            "flavor": Flavor.parse("mysql:8.0"),
            "connection": ConnectionParams(user="root", environment="production"),
        }
        values.update(overrides)
        return TargetContext(**values)

    return _make


# ------------------------------------------------------------------
# Sample differences
# ------------------------------------------------------------------


def rollups_alter(rows: int = 0) -> TableDiff:
    return TableDiff(
        kind=DiffKind.ALTER,
        table=TableRef(name="rollups", row_estimate=rows),
        clauses=[AlterClause(sql="ADD COLUMN `value` bigint(20) DEFAULT NULL")],
    )


def pageviews_alter(rows: int = 1) -> TableDiff:
    return TableDiff(
        kind=DiffKind.ALTER,
        table=TableRef(name="pageviews", row_estimate=rows),
        clauses=[
            AlterClause(sql="ADD COLUMN `domain` varchar(40) NOT NULL DEFAULT 'skeema.io'")
        ],
    )


def database_alter() -> DatabaseDiff:
    return DatabaseDiff(
        kind=DiffKind.ALTER,
        name="analytics",
        default_charset="utf8mb4",
        default_collation="utf8mb4_general_ci",
    )


def widget_counts_drop() -> TableDiff:
    return TableDiff(kind=DiffKind.DROP, table=TableRef(name="widget_counts", row_estimate=3))


def activity_create() -> TableDiff:
    return TableDiff(
        kind=DiffKind.CREATE,
        table=TableRef(name="activity"),
        create_statement=(
            "CREATE TABLE `activity` (\n"
            "  `id` int unsigned NOT NULL AUTO_INCREMENT,\n"
            "  `ts` datetime NOT NULL,\n"
            "  PRIMARY KEY (`id`)\n"
            ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"
        ),
    )
