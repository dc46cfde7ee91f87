"""Structural differences and the flags that control their rendering.

Usage:
    from db_applier.schema import TableDiff, AlterClause, TableRef, DiffKind
    from db_applier.schema import StatementModifiers, load_diff_document
"""

from db_applier.schema.diff import (
    AlterClause,
    AnyDiff,
    DatabaseDiff,
    DiffDocument,
    ObjectDiff,
    RoutineDiff,
    TableDiff,
    load_diff_document,
    object_label,
)
from db_applier.schema.models import (
    DiffKind,
    ObjectClass,
    StatementModifiers,
    TableRef,
    escape_identifier,
)

__all__ = [
    "ObjectDiff",
    "DatabaseDiff",
    "TableDiff",
    "RoutineDiff",
    "AlterClause",
    "AnyDiff",
    "DiffDocument",
    "load_diff_document",
    "object_label",
    "DiffKind",
    "ObjectClass",
    "StatementModifiers",
    "TableRef",
    "escape_identifier",
]
