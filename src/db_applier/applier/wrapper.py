"""Decides whether a difference runs directly or through a wrapper command.

Decision table:

============================  ==========================================  =================
Difference                    Condition                                   Outcome
============================  ==========================================  =================
database-level, any verb      --                                          ddl-wrapper, else direct
table create / drop           --                                          ddl-wrapper, else direct
routine create / drop / alter --                                          ddl-wrapper, else direct
table alter                   rows >= alter-wrapper-min-size and          alter-wrapper
                              alter-wrapper configured
table alter                   otherwise                                   ddl-wrapper, else direct
============================  ==========================================  =================
"""

from dataclasses import dataclass
from enum import StrEnum

from db_applier.applier.target import TargetContext
from db_applier.schema.diff import ObjectDiff
from db_applier.schema.models import DiffKind, ObjectClass

DDL_WRAPPER = "ddl-wrapper"
ALTER_WRAPPER = "alter-wrapper"


class ExecutionMode(StrEnum):
    DIRECT = "direct"
    SHELL_OUT = "shell-out"


@dataclass(frozen=True)
class WrapperChoice:
    """Outcome of wrapper selection.

    ``template_name`` and ``template`` are empty for direct execution.
    """

    mode: ExecutionMode
    template_name: str = ""
    template: str = ""

    @property
    def is_shell_out(self) -> bool:
        return self.mode == ExecutionMode.SHELL_OUT


DIRECT = WrapperChoice(mode=ExecutionMode.DIRECT)


def _ddl_wrapper(target: TargetContext) -> WrapperChoice:
    if not target.ddl_wrapper:
        return DIRECT
    return WrapperChoice(ExecutionMode.SHELL_OUT, DDL_WRAPPER, target.ddl_wrapper)


def select_wrapper(diff: ObjectDiff, target: TargetContext) -> WrapperChoice:
    """Choose direct execution, ``ddl-wrapper`` or ``alter-wrapper`` for *diff*."""
    match ObjectClass(diff.object_class):
        case ObjectClass.TABLE if diff.kind == DiffKind.ALTER:
            table = diff.table_ref
            rows = table.row_estimate if table is not None else 0
            if target.alter_wrapper and rows >= target.alter_wrapper_min_size:
                return WrapperChoice(
                    ExecutionMode.SHELL_OUT, ALTER_WRAPPER, target.alter_wrapper
                )
            return _ddl_wrapper(target)
        case ObjectClass.DATABASE | ObjectClass.TABLE:
            return _ddl_wrapper(target)
        case ObjectClass.PROCEDURE | ObjectClass.FUNCTION:
            return _ddl_wrapper(target)
