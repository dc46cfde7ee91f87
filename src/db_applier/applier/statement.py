"""The executable unit produced for one difference.

A ``DDLStatement`` holds rendered SQL plus either nothing else (direct
execution over a schema-scoped connection) or a fully rendered shell
command (execution through a wrapper).  It is built once by
``new_ddl_statement()``, executed at most once, and then discarded.

Usage:
    stmt = new_ddl_statement(diff, mods, target)
    print(stmt.display(), end="")   # plan output
    output = await stmt.execute()   # push
"""

import logging

from db_applier.applier.target import TargetContext
from db_applier.applier.wrapper import ExecutionMode
from db_applier.errors import ExecutionError
from db_applier.schema.models import DiffKind, ObjectClass

logger = logging.getLogger(__name__)


class DDLStatement:
    """A rendered, safety-checked statement ready for execution or display.

    Args:
        schema_name: Owning schema; empty for database-level statements.
        sql: Rendered, version-adjusted SQL text.
        kind: Statement verb.
        object_class: Class of the affected object.
        object_name: Name of the affected object.
        target: Target supplying the connector and shell runner.
        mode: Direct execution or shell-out.
        shell_command: Rendered wrapper command; required for (and only
            allowed with) ``ExecutionMode.SHELL_OUT``.
        printable_command: Copy of ``shell_command`` with secrets masked, used
            for display, logs and errors.  Defaults to ``shell_command``.
        skip_foreign_key_checks: Run direct SQL with ``foreign_key_checks=0``.

    Raises:
        ValueError: If ``shell_command`` does not agree with ``mode``.
    """

    def __init__(
        self,
        *,
        schema_name: str,
        sql: str,
        kind: DiffKind,
        object_class: ObjectClass,
        object_name: str,
        target: TargetContext,
        mode: ExecutionMode = ExecutionMode.DIRECT,
        shell_command: str = "",
        printable_command: str = "",
        skip_foreign_key_checks: bool = False,
    ) -> None:
        if (mode == ExecutionMode.SHELL_OUT) != bool(shell_command):
            raise ValueError(
                f"shell_command must be set if and only if mode is {ExecutionMode.SHELL_OUT}"
            )
        self._schema_name = schema_name
        self._sql = sql
        self._kind = kind
        self._object_class = object_class
        self._object_name = object_name
        self._target = target
        self._mode = mode
        self._shell_command = shell_command
        self._printable_command = printable_command or shell_command
        self._skip_foreign_key_checks = skip_foreign_key_checks
        self._executed = False

    @property
    def schema_name(self) -> str:
        return self._schema_name

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def kind(self) -> DiffKind:
        return self._kind

    @property
    def object_class(self) -> ObjectClass:
        return self._object_class

    @property
    def object_name(self) -> str:
        return self._object_name

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def shell_command(self) -> str:
        return self._shell_command

    @property
    def printable_command(self) -> str:
        return self._printable_command

    @property
    def label(self) -> str:
        """Human label, e.g. ``ALTER TABLE analytics.pageviews``."""
        if self._object_class == ObjectClass.DATABASE or not self._schema_name:
            qualified = self._object_name
        else:
            qualified = f"{self._schema_name}.{self._object_name}"
        return f"{self._kind} {self._object_class} {qualified}"

    def is_shell_out(self) -> bool:
        return self._mode == ExecutionMode.SHELL_OUT

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self) -> str:
        """Execute the statement once.

        Direct statements run over a client scoped to ``schema_name``.
        Shell-out statements run the wrapper command and wait for it.

        Returns:
            Captured command output for shell-outs, ``""`` for direct SQL.

        Raises:
            ExecutionError: If the database rejects the statement, or the
                command cannot start or exits non-zero.
            RuntimeError: If the statement was already executed.
        """
        if self._executed:
            raise RuntimeError(f"{self.label} has already been executed")
        self._executed = True

        if self.is_shell_out():
            return await self._execute_shell_out()
        await self._execute_direct()
        return ""

    async def _execute_direct(self) -> None:
        session_variables = {"foreign_key_checks": "0"} if self._skip_foreign_key_checks else None
        client = self._target.connector.connect(self._schema_name, session_variables)
        logger.info("Executing %s", self.label)
        try:
            await client.execute(self._sql)
        except Exception as e:
            raise ExecutionError(self.label, self._sql, output=str(e)) from e

    async def _execute_shell_out(self) -> str:
        logger.info("Executing %s via %s", self.label, self._printable_command)
        try:
            result = await self._target.runner.run(self._shell_command)
        except OSError as e:
            raise ExecutionError(self.label, self._printable_command, output=str(e)) from e
        if not result.ok:
            raise ExecutionError(
                self.label,
                self._printable_command,
                output=result.output,
                exit_code=result.exit_code,
            )
        return result.output

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def display(self, terminator: bool = True) -> str:
        """Render for plan output.

        Direct statements show their SQL (with ``;`` and newline when
        *terminator* is set).  Shell-outs use the mysql client's shell
        escape notation, ``\\! <command>``; that form is for reading only.
        """
        if self.is_shell_out():
            return f"\\! {self._printable_command}\n"
        if terminator:
            return f"{self._sql};\n"
        return self._sql

    def __str__(self) -> str:
        return self.display()

    def __repr__(self) -> str:
        return f"DDLStatement({self.label!r}, mode={self._mode!s})"
