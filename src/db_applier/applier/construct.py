"""Turns one difference into one ``DDLStatement``.

Construction is pure with respect to the database and the OS: it renders
SQL, checks safety, picks a wrapper and renders the wrapper command, but
executes nothing.  It is safe to call concurrently for independent
differences.

Usage:
    from db_applier.applier.construct import new_ddl_statement

    stmt = new_ddl_statement(diff, mods, target)
    if stmt is not None:
        print(stmt.display(), end="")
"""

import logging

from db_applier.applier import safety
from db_applier.applier.shellout import render_command
from db_applier.applier.statement import DDLStatement
from db_applier.applier.target import TargetContext
from db_applier.applier.wrapper import ALTER_WRAPPER, select_wrapper
from db_applier.errors import RenderError, TemplateError
from db_applier.schema.diff import ObjectDiff, object_label
from db_applier.schema.models import (
    DiffKind,
    ObjectClass,
    StatementModifiers,
    escape_identifier,
)

logger = logging.getLogger(__name__)

# Placeholders substituted verbatim; all others are shell-quoted
RAW_PLACEHOLDERS = frozenset({"TYPE", "CLASS"})

# Shown in place of {PASSWORD} wherever a command is displayed or logged
MASKED_PASSWORD = "*****"


def adjust_for_flavor(mods: StatementModifiers, target: TargetContext) -> StatementModifiers:
    """Drop clauses the target server cannot parse.

    ALGORITHM= and LOCK= need MySQL 5.6 / MariaDB 10.0; WITH VALIDATION
    needs MySQL 5.7.
    """
    flavor = target.flavor
    if not flavor.supports_alter_clauses and (mods.lock_clause or mods.algorithm_clause):
        logger.debug("Omitting ALGORITHM/LOCK clauses: unsupported by %s", flavor)
        mods = mods.model_copy(update={"lock_clause": "", "algorithm_clause": ""})
    if not flavor.supports_validation_clause and mods.virtual_col_validation:
        mods = mods.model_copy(update={"virtual_col_validation": False})
    return mods


def alter_clauses(diff: ObjectDiff, sql: str) -> str:
    """Text following ``ALTER <CLASS> `name` `` in an ALTER statement.

    Empty for CREATE and DROP statements.

    Example:
        alter_clauses(diff, "ALTER TABLE `t` ADD COLUMN `c` int")
        # 'ADD COLUMN `c` int'
    """
    if diff.kind != DiffKind.ALTER:
        return ""
    prefix = f"ALTER {diff.object_class} {escape_identifier(diff.object_name)} "
    if not sql.startswith(prefix):
        return ""
    return sql[len(prefix):]


def shell_variables(
    diff: ObjectDiff,
    schema_name: str,
    sql: str,
    target: TargetContext,
) -> dict[str, str]:
    """Values for every wrapper placeholder.

    ``{SCHEMA}`` is the statement's schema (empty for database-level
    statements), ``{NAME}`` the object name, ``{TABLE}`` and ``{ROWS}`` are
    empty for non-table objects, ``{TYPE}`` is the verb and ``{CLASS}`` the
    object class, ``{CLAUSES}`` is described in ``alter_clauses()``, and
    ``{DDL}`` is the full statement.  Connection placeholders come from the
    target.
    """
    table = diff.table_ref
    variables = {
        "SCHEMA": schema_name,
        "NAME": diff.object_name,
        "TABLE": table.name if table is not None else "",
        "ROWS": str(table.row_estimate) if table is not None else "",
        "TYPE": str(diff.kind),
        "CLASS": str(diff.object_class),
        "CLAUSES": alter_clauses(diff, sql),
        "DDL": sql,
    }
    variables.update(target.connection.template_variables())
    return variables


def new_ddl_statement(
    diff: ObjectDiff,
    mods: StatementModifiers,
    target: TargetContext,
) -> DDLStatement | None:
    """Build the statement that applies *diff* to *target*.

    Steps: relax modifiers for small tables (``safe_below_size``), gate on
    safety, drop clauses the server flavor cannot parse, choose a wrapper,
    render SQL, render the wrapper command.  When ``alter-wrapper`` is chosen
    the ALGORITHM/LOCK clauses are left out, since the external tool decides
    how the table is copied.

    Args:
        diff: The difference to apply.
        mods: Rendering modifiers.
        target: Target the statement will run against.

    Returns:
        The statement, or ``None`` when the difference renders to no SQL
        under these modifiers.

    Raises:
        UnsafeChangeError: If the difference is unsafe and not permitted.
        RenderError: If the difference cannot be rendered.
        TemplateError: If the chosen wrapper template is invalid or renders
            to an empty command.
    """
    object_class = ObjectClass(diff.object_class)
    schema_name = "" if object_class == ObjectClass.DATABASE else target.schema_name

    mods = safety.relax_for_small_tables(diff, mods, target.safe_below_size)
    safety.validate(diff, mods, schema_name)
    mods = adjust_for_flavor(mods, target)

    choice = select_wrapper(diff, target)
    if choice.template_name == ALTER_WRAPPER:
        mods = mods.without_online_clauses()

    label = f"{diff.kind} {object_class} {object_label(diff, schema_name)}"
    try:
        sql = diff.render(mods)
    except ValueError as e:
        raise RenderError(label, str(e)) from e
    if not sql:
        logger.debug("Skipping %s: no SQL generated", label)
        return None

    shell_command = printable_command = ""
    if choice.is_shell_out:
        variables = shell_variables(diff, schema_name, sql, target)
        try:
            shell_command = render_command(choice.template, variables, raw=RAW_PLACEHOLDERS)
            if variables["PASSWORD"]:
                variables["PASSWORD"] = MASKED_PASSWORD
            printable_command = render_command(choice.template, variables, raw=RAW_PLACEHOLDERS)
        except TemplateError as e:
            raise TemplateError(f"Invalid {choice.template_name} for {label}: {e}") from e
        if not shell_command.strip():
            raise TemplateError(f"{choice.template_name} rendered an empty command for {label}")
        logger.debug("Routing %s through %s", label, choice.template_name)

    return DDLStatement(
        schema_name=schema_name,
        sql=sql,
        kind=diff.kind,
        object_class=object_class,
        object_name=diff.object_name,
        target=target,
        mode=choice.mode,
        shell_command=shell_command,
        printable_command=printable_command,
        skip_foreign_key_checks=mods.skip_foreign_key_checks,
    )
