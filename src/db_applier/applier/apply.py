"""Apply an ordered list of differences to one target.

Statements are constructed for every difference before anything runs, so
a configuration defect is reported before the database or the OS is
touched.  Execution then follows the caller's order, one statement at a
time, and stops at the first failure.  There is no retry logic here:
callers decide whether to retry, abort, or move on to other targets.

Usage:
    from db_applier.applier.apply import apply_diffs

    result = await apply_diffs(target, diffs, mods, dry_run=True)
    for line in result.planned:
        print(line, end="")

    result = await apply_diffs(target, diffs, mods, dry_run=False)
    if not result.success:
        print(result.format_report())
"""

import logging
from collections.abc import Iterable

from pydantic import BaseModel, Field

from db_applier.applier.construct import new_ddl_statement
from db_applier.applier.statement import DDLStatement
from db_applier.applier.target import TargetContext
from db_applier.errors import ExecutionError, RenderError, UnsafeChangeError
from db_applier.schema.diff import ObjectDiff
from db_applier.schema.models import StatementModifiers

logger = logging.getLogger(__name__)


class ApplyResult(BaseModel):
    """Result of applying differences to one target.

    Attributes:
        success: True if nothing was skipped and nothing failed.
        schema_name: Target schema.
        planned: ``display()`` of every constructed statement, in order.
        executed: Number of statements that ran successfully.
        skipped_unsafe: Messages for differences refused by the safety gate.
        errors: Render and execution error messages.
        outputs: Captured output of successful shell-out statements.
    """

    success: bool = False
    schema_name: str = ""
    planned: list[str] = Field(default_factory=list)
    executed: int = 0
    skipped_unsafe: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    outputs: list[str] = Field(default_factory=list)

    def format_report(self) -> str:
        """Format the result as a human-readable report."""
        lines = [
            f"{self.schema_name or '(instance)'}: "
            f"{self.executed} of {len(self.planned)} statements executed"
        ]
        if self.skipped_unsafe:
            lines.append(f"\n  Skipped unsafe changes ({len(self.skipped_unsafe)}):")
            for message in self.skipped_unsafe:
                lines.append(f"    - {message}")
        if self.errors:
            lines.append(f"\n  Errors ({len(self.errors)}):")
            for message in self.errors:
                lines.append(f"    - {message}")
        return "\n".join(lines)


def build_statements(
    target: TargetContext,
    diffs: Iterable[ObjectDiff],
    mods: StatementModifiers,
    result: ApplyResult,
) -> list[DDLStatement]:
    """Construct statements for *diffs*, recording per-difference refusals.

    Unsafe and unrenderable differences are recorded on *result* and
    skipped.  ``TemplateError`` propagates: a broken wrapper template
    affects every difference routed through it.
    """
    statements: list[DDLStatement] = []
    for diff in diffs:
        try:
            stmt = new_ddl_statement(diff, mods, target)
        except UnsafeChangeError as e:
            logger.warning("%s", e)
            result.skipped_unsafe.append(str(e))
            continue
        except RenderError as e:
            logger.error("%s", e)
            result.errors.append(str(e))
            continue
        if stmt is not None:
            statements.append(stmt)
            result.planned.append(stmt.display())
    return statements


async def apply_diffs(
    target: TargetContext,
    diffs: Iterable[ObjectDiff],
    mods: StatementModifiers,
    dry_run: bool = True,
) -> ApplyResult:
    """Construct and (unless *dry_run*) execute statements for *diffs*.

    Args:
        target: Target to apply to.
        diffs: Differences in dependency order, as produced by the diff engine.
        mods: Rendering modifiers shared by every difference.
        dry_run: If True, only construct statements and report them.

    Returns:
        ``ApplyResult`` with the plan and outcome.

    Raises:
        TemplateError: If a wrapper template is misconfigured.
    """
    result = ApplyResult(schema_name=target.schema_name)
    statements = build_statements(target, diffs, mods, result)

    if dry_run:
        result.success = not (result.skipped_unsafe or result.errors)
        return result

    for stmt in statements:
        try:
            output = await stmt.execute()
        except ExecutionError as e:
            logger.error("%s", e)
            result.errors.append(str(e))
            remaining = len(statements) - result.executed - 1
            if remaining:
                logger.warning(
                    "Skipping %d remaining statements for %s",
                    remaining,
                    target.schema_name,
                )
            break
        result.executed += 1
        if output:
            result.outputs.append(output)

    result.success = not (result.skipped_unsafe or result.errors)
    return result
