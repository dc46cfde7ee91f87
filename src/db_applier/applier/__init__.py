"""Difference-to-statement translation and execution.

Provides the construction entry point (``new_ddl_statement``), the
resulting ``DDLStatement``, the policies it is built from (safety gate,
wrapper selection, shell templating), the ``TargetContext`` it reads, and
a batch helper (``apply_diffs``).

Usage:
    from db_applier.applier import TargetContext, new_ddl_statement, apply_diffs
"""

from db_applier.applier.apply import ApplyResult, apply_diffs, build_statements
from db_applier.applier.construct import new_ddl_statement
from db_applier.applier.shellout import (
    ShellResult,
    ShellRunner,
    SubprocessRunner,
    escape_value,
    render_command,
)
from db_applier.applier.statement import DDLStatement
from db_applier.applier.target import ConnectionParams, Connector, Flavor, TargetContext
from db_applier.applier.wrapper import ExecutionMode, WrapperChoice, select_wrapper

__all__ = [
    "new_ddl_statement",
    "DDLStatement",
    "apply_diffs",
    "build_statements",
    "ApplyResult",
    "TargetContext",
    "ConnectionParams",
    "Connector",
    "Flavor",
    "ExecutionMode",
    "WrapperChoice",
    "select_wrapper",
    "render_command",
    "escape_value",
    "ShellRunner",
    "ShellResult",
    "SubprocessRunner",
]
