"""Safety gate for unsafe differences.

Whether a difference is unsafe (can lose data or cannot be undone) is
decided by the difference itself.  This module only gates on the
``allow_unsafe`` modifier, before any SQL is rendered or any wrapper
decision is made.
"""

import logging

from db_applier.errors import UnsafeChangeError
from db_applier.schema.diff import ObjectDiff, object_label
from db_applier.schema.models import StatementModifiers

logger = logging.getLogger(__name__)


def validate(diff: ObjectDiff, mods: StatementModifiers, schema_name: str = "") -> None:
    """Raise if *diff* is unsafe and *mods* do not permit unsafe changes.

    Args:
        diff: Difference to check.
        mods: Modifiers the difference will be rendered under.
        schema_name: Owning schema, used only for the error label.

    Raises:
        UnsafeChangeError: If the difference is unsafe and
            ``mods.allow_unsafe`` is false.
    """
    if mods.allow_unsafe or not diff.is_unsafe():
        return
    raise UnsafeChangeError(
        f"{diff.kind} {diff.object_class} {object_label(diff, schema_name)}",
        diff.unsafe_reason(),
    )


def relax_for_small_tables(
    diff: ObjectDiff,
    mods: StatementModifiers,
    safe_below_size: int,
) -> StatementModifiers:
    """Permit unsafe changes to tables with fewer than *safe_below_size* rows.

    Returns *mods* unchanged unless the difference targets a table whose row
    estimate is below the threshold.  A threshold of ``0`` disables this.

    Example:
        mods = relax_for_small_tables(diff, mods, safe_below_size=1)
        # empty tables may be dropped or have columns dropped
    """
    table = diff.table_ref
    if mods.allow_unsafe or safe_below_size <= 0 or table is None:
        return mods
    if table.row_estimate >= safe_below_size:
        return mods
    logger.debug(
        "Permitting unsafe changes to %s: %d rows is below safe-below-size %d",
        table.name,
        table.row_estimate,
        safe_below_size,
    )
    return mods.model_copy(update={"allow_unsafe": True})
