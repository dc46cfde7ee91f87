"""Structural differences between desired and live schema.

A difference describes one atomic change to one schema object and knows how
to render itself to MySQL DDL under a set of ``StatementModifiers``.  The
diff engine that *decides* which differences exist is external; this module
defines the surface the applier consumes (``ObjectDiff``) plus concrete,
JSON-loadable variants for databases, tables and routines.

Usage:
    from db_applier.schema.diff import AlterClause, TableDiff, load_diff_document
    from db_applier.schema.models import DiffKind, StatementModifiers, TableRef

    diff = TableDiff(
        kind=DiffKind.ALTER,
        table=TableRef(name="rollups", row_estimate=0),
        clauses=[AlterClause(sql="ADD COLUMN `value` bigint(20) DEFAULT NULL")],
    )
    diff.render(StatementModifiers(algorithm_clause="inplace"))
    # 'ALTER TABLE `rollups` ALGORITHM=INPLACE, ADD COLUMN `value` bigint(20) DEFAULT NULL'
"""

import json
from pathlib import Path
from typing import Annotated, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

from db_applier.schema.models import (
    DiffKind,
    ObjectClass,
    StatementModifiers,
    TableRef,
    escape_identifier,
)


class ObjectDiff(Protocol):
    """Difference interface consumed by the applier.

    ``render`` returns an empty string when the difference is a no-op under
    the given modifiers, and raises ``ValueError`` when no SQL can be
    produced for it.
    """

    kind: DiffKind
    object_class: str

    @property
    def object_name(self) -> str: ...

    @property
    def table_ref(self) -> TableRef | None: ...

    def is_unsafe(self) -> bool: ...

    def unsafe_reason(self) -> str: ...

    def render(self, mods: StatementModifiers) -> str: ...


def object_label(diff: ObjectDiff, schema_name: str = "") -> str:
    """Schema-qualified label for log and error messages.

    Database-level differences are labelled by the database name alone.
    """
    if diff.object_class == ObjectClass.DATABASE or not schema_name:
        return diff.object_name
    return f"{schema_name}.{diff.object_name}"


# ------------------------------------------------------------------
# Database
# ------------------------------------------------------------------


class DatabaseDiff(BaseModel):
    """CREATE, DROP or ALTER DATABASE (default character set / collation)."""

    model_config = ConfigDict(frozen=True)

    object_class: Literal["DATABASE"] = "DATABASE"
    kind: DiffKind
    name: str
    default_charset: str = ""
    default_collation: str = ""

    @property
    def object_name(self) -> str:
        return self.name

    @property
    def table_ref(self) -> TableRef | None:
        return None

    def is_unsafe(self) -> bool:
        return self.kind == DiffKind.DROP

    def unsafe_reason(self) -> str:
        if self.kind == DiffKind.DROP:
            return "dropping a database removes all of its tables and data"
        return ""

    def _charset_clauses(self) -> str:
        parts: list[str] = []
        if self.default_charset:
            parts.append(f"CHARACTER SET {self.default_charset}")
        if self.default_collation:
            parts.append(f"COLLATE {self.default_collation}")
        return " ".join(parts)

    def render(self, mods: StatementModifiers) -> str:
        name = escape_identifier(self.name)
        clauses = self._charset_clauses()
        if self.kind == DiffKind.CREATE:
            return f"CREATE DATABASE {name} {clauses}".rstrip()
        if self.kind == DiffKind.DROP:
            return f"DROP DATABASE {name}"
        if not clauses:
            return ""
        return f"ALTER DATABASE {name} {clauses}"


# ------------------------------------------------------------------
# Table
# ------------------------------------------------------------------


class AlterClause(BaseModel):
    """One clause of an ALTER TABLE statement.

    Attributes:
        sql: Clause text, e.g. ``ADD COLUMN `c` int``.
        unsafe: True if the clause can lose data (DROP COLUMN, narrowing
            MODIFY COLUMN, ...).
        virtual_column: True if the clause adds or modifies a generated
            column, making ``WITH VALIDATION`` meaningful.
    """

    model_config = ConfigDict(frozen=True)

    sql: str
    unsafe: bool = False
    virtual_column: bool = False


class TableDiff(BaseModel):
    """CREATE, DROP or ALTER TABLE.

    CREATE renders ``create_statement`` verbatim.  ALTER renders the ordered
    ``clauses``, preceded by ALGORITHM / LOCK clauses when the modifiers set
    them.
    """

    model_config = ConfigDict(frozen=True)

    object_class: Literal["TABLE"] = "TABLE"
    kind: DiffKind
    table: TableRef
    create_statement: str = ""
    clauses: list[AlterClause] = Field(default_factory=list)

    @property
    def object_name(self) -> str:
        return self.table.name

    @property
    def table_ref(self) -> TableRef | None:
        return self.table

    def is_unsafe(self) -> bool:
        if self.kind == DiffKind.DROP:
            return True
        if self.kind == DiffKind.ALTER:
            return any(clause.unsafe for clause in self.clauses)
        return False

    def unsafe_reason(self) -> str:
        if self.kind == DiffKind.DROP:
            return "dropping a table removes all of its rows"
        unsafe = [clause.sql for clause in self.clauses if clause.unsafe]
        if self.kind == DiffKind.ALTER and unsafe:
            return "clause may lose data: " + "; ".join(unsafe)
        return ""

    def render(self, mods: StatementModifiers) -> str:
        name = escape_identifier(self.table.name)
        if self.kind == DiffKind.CREATE:
            if not self.create_statement:
                raise ValueError(f"no CREATE TABLE statement available for {name}")
            return self.create_statement
        if self.kind == DiffKind.DROP:
            return f"DROP TABLE {name}"

        if not self.clauses:
            return ""
        parts: list[str] = []
        if mods.algorithm_clause:
            parts.append(f"ALGORITHM={mods.algorithm_clause.upper()}")
        if mods.lock_clause:
            parts.append(f"LOCK={mods.lock_clause.upper()}")
        if mods.virtual_col_validation and any(c.virtual_column for c in self.clauses):
            parts.append("WITH VALIDATION")
        parts.extend(clause.sql for clause in self.clauses)
        return f"ALTER TABLE {name} " + ", ".join(parts)


# ------------------------------------------------------------------
# Routines
# ------------------------------------------------------------------


class RoutineDiff(BaseModel):
    """CREATE, DROP or ALTER of a stored procedure or function.

    ALTER only covers routine characteristics (``COMMENT``, ``SQL SECURITY``,
    ...); body changes arrive from the diff engine as DROP + CREATE.
    """

    model_config = ConfigDict(frozen=True)

    object_class: Literal["PROCEDURE", "FUNCTION"]
    kind: DiffKind
    name: str
    create_statement: str = ""
    characteristics: str = ""

    @property
    def object_name(self) -> str:
        return self.name

    @property
    def table_ref(self) -> TableRef | None:
        return None

    def is_unsafe(self) -> bool:
        return self.kind == DiffKind.DROP

    def unsafe_reason(self) -> str:
        if self.kind == DiffKind.DROP:
            return f"dropping a {self.object_class.lower()} cannot be undone"
        return ""

    def render(self, mods: StatementModifiers) -> str:
        name = escape_identifier(self.name)
        if self.kind == DiffKind.CREATE:
            if not self.create_statement:
                raise ValueError(
                    f"no CREATE {self.object_class} statement available for {name}"
                )
            return self.create_statement
        if self.kind == DiffKind.DROP:
            return f"DROP {self.object_class} {name}"
        if not self.characteristics:
            return ""
        return f"ALTER {self.object_class} {name} {self.characteristics}"


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------


AnyDiff = Annotated[
    DatabaseDiff | TableDiff | RoutineDiff,
    Field(discriminator="object_class"),
]


class DiffDocument(BaseModel):
    """Serialized list of differences for one target, in execution order."""

    diffs: list[AnyDiff] = Field(default_factory=list)


def load_diff_document(path: str | Path) -> DiffDocument:
    """Load differences from a JSON file.

    Args:
        path: JSON file shaped like ``{"diffs": [{"object_class": "TABLE", ...}]}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the JSON does not describe valid differences.
    """
    diff_path = Path(path)
    if not diff_path.exists():
        raise FileNotFoundError(f"Diff file not found: {diff_path}")
    return DiffDocument.model_validate(json.loads(diff_path.read_text()))
