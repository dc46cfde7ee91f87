"""Pydantic models shared by the difference types.

This module contains:
- Labels: DiffKind (statement verb), ObjectClass (object class)
- Object references: TableRef
- Rendering flags: StatementModifiers
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class DiffKind(StrEnum):
    """Verb of the statement a difference renders to."""

    CREATE = "CREATE"
    DROP = "DROP"
    ALTER = "ALTER"


class ObjectClass(StrEnum):
    """Class of schema object a difference applies to."""

    DATABASE = "DATABASE"
    TABLE = "TABLE"
    PROCEDURE = "PROCEDURE"
    FUNCTION = "FUNCTION"


def escape_identifier(name: str) -> str:
    """Backtick-quote an identifier, doubling any embedded backticks.

    Example:
        >>> escape_identifier("page`views")
        '`page``views`'
    """
    return "`" + name.replace("`", "``") + "`"


class TableRef(BaseModel):
    """The table affected by a table-level difference.

    Example:
        >>> ref = TableRef(name="pageviews", row_estimate=1)
        >>> ref.row_estimate
        1
    """

    model_config = ConfigDict(frozen=True)

    name: str
    row_estimate: int = Field(default=0, ge=0)


class StatementModifiers(BaseModel):
    """Flags controlling how a difference renders to SQL.

    ``lock_clause`` and ``algorithm_clause`` are left empty when the target
    server does not support them.  Instances are immutable; derive changed
    copies with ``model_copy(update=...)``.

    Example:
        >>> mods = StatementModifiers(algorithm_clause="inplace", lock_clause="none")
        >>> mods.without_online_clauses().algorithm_clause
        ''
    """

    model_config = ConfigDict(frozen=True)

    allow_unsafe: bool = False
    lock_clause: str = ""
    algorithm_clause: str = ""
    skip_foreign_key_checks: bool = False
    virtual_col_validation: bool = False

    def without_online_clauses(self) -> "StatementModifiers":
        """Copy with the ALGORITHM, LOCK and WITH VALIDATION clauses cleared."""
        return self.model_copy(
            update={
                "lock_clause": "",
                "algorithm_clause": "",
                "virtual_col_validation": False,
            }
        )
