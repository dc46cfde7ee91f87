"""db-applier: turn declarative schema differences into executable DDL.

Each structural difference (from an external diff engine) becomes one
safety-checked ``DDLStatement`` that runs either directly over a
schema-scoped MySQL connection or through an operator-configured wrapper
command (e.g. an online schema change tool).

Usage:
    from db_applier import new_ddl_statement, TargetContext, StatementModifiers
    from db_applier import TableDiff, AlterClause, TableRef, DiffKind
    from db_applier import apply_diffs, load_applier_config, get_environment
"""

__version__ = "0.1.0"

# Differences
from db_applier.schema.diff import (
    AlterClause,
    DatabaseDiff,
    ObjectDiff,
    RoutineDiff,
    TableDiff,
    load_diff_document,
)
from db_applier.schema.models import DiffKind, ObjectClass, StatementModifiers, TableRef

# Applier
from db_applier.applier.apply import ApplyResult, apply_diffs
from db_applier.applier.construct import new_ddl_statement
from db_applier.applier.statement import DDLStatement
from db_applier.applier.target import ConnectionParams, Flavor, TargetContext

# Config
from db_applier.config.loader import get_environment, load_applier_config
from db_applier.config.models import ApplierConfig, ApplierSettings

# Errors
from db_applier.errors import (
    ApplierError,
    EnvironmentNotFoundError,
    ExecutionError,
    RenderError,
    TemplateError,
    UnsafeChangeError,
)

__all__ = [
    # Differences
    "ObjectDiff",
    "DatabaseDiff",
    "TableDiff",
    "RoutineDiff",
    "AlterClause",
    "TableRef",
    "DiffKind",
    "ObjectClass",
    "StatementModifiers",
    "load_diff_document",
    # Applier
    "new_ddl_statement",
    "DDLStatement",
    "apply_diffs",
    "ApplyResult",
    "TargetContext",
    "ConnectionParams",
    "Flavor",
    # Config
    "load_applier_config",
    "get_environment",
    "ApplierConfig",
    "ApplierSettings",
    # Errors
    "ApplierError",
    "UnsafeChangeError",
    "RenderError",
    "TemplateError",
    "ExecutionError",
    "EnvironmentNotFoundError",
]
