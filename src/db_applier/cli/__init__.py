"""CLI for planning and pushing schema differences.

Reads differences produced by a diff engine (JSON), resolves an
environment from applier.toml, and either prints the statements that would
run (``plan``) or runs them (``push``).

Usage:
    db-applier plan --environment production --schema analytics --diffs diffs.json
    db-applier push --environment production --schema analytics --diffs diffs.json
    db-applier --config conf/applier.toml --debug push ...

Commands:
    plan  - Print each statement (SQL, or \\! <command> for wrapped ones)
    push  - Execute statements in order, stopping at the first failure

Exit codes:
    0 - success
    1 - some statements failed or were skipped as unsafe
    2 - bad configuration (missing file, unknown environment, invalid template)
        or a server that cannot be reached to detect its flavor
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from sqlalchemy.exc import SQLAlchemyError

from db_applier.applier.apply import ApplyResult, apply_diffs
from db_applier.config.loader import DEFAULT_CONFIG_FILE, get_environment, load_applier_config
from db_applier.errors import EnvironmentNotFoundError, TemplateError
from db_applier.factory import MySQLConnector, build_target, detect_flavor
from db_applier.schema.diff import load_diff_document

logger = logging.getLogger(__name__)

console = Console()

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_BAD_CONFIG = 2


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _print_result(result: ApplyResult, dry_run: bool) -> None:
    if result.planned:
        console.rule(f"[bold]{result.schema_name}[/bold]")
        for line in result.planned:
            console.print(line, end="", markup=False, highlight=False, soft_wrap=True)

    for output in result.outputs:
        console.print(output, end="", markup=False, highlight=False, soft_wrap=True)

    if not result.planned and not result.skipped_unsafe and not result.errors:
        console.print("[bold green]v[/bold green] No differences to apply")
        return

    if result.success:
        verb = "planned" if dry_run else "executed"
        count = len(result.planned) if dry_run else result.executed
        console.print(f"\n[bold green]v[/bold green] {count} statements {verb}")
    else:
        console.print()
        console.print("[bold red]x[/bold red] Apply incomplete")
        console.print(result.format_report(), markup=False, highlight=False)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_apply(args: argparse.Namespace, dry_run: bool) -> int:
    """Shared implementation for plan and push.

    Returns:
        Exit code.
    """
    try:
        config = load_applier_config(args.config)
        settings = get_environment(config, args.environment)
        document = load_diff_document(args.diffs)
    except (FileNotFoundError, ValueError, EnvironmentNotFoundError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return EXIT_BAD_CONFIG

    mods = settings.statement_modifiers()
    if args.allow_unsafe:
        mods = mods.model_copy(update={"allow_unsafe": True})

    connector = MySQLConnector(settings)
    try:
        flavor = None
        if not settings.flavor and not dry_run:
            try:
                flavor = await detect_flavor(connector)
            except (SQLAlchemyError, OSError, ValueError) as e:
                console.print(f"[red]Error: cannot detect server flavor: {escape(str(e))}[/red]")
                return EXIT_BAD_CONFIG
        elif not settings.flavor:
            logger.warning(
                "No flavor configured for %s; planning for a modern server. "
                "ALGORITHM/LOCK clauses may differ from what push runs.",
                settings.environment,
            )
        try:
            target = build_target(settings, args.schema, connector, flavor)
        except ValueError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            return EXIT_BAD_CONFIG

        try:
            result = await apply_diffs(target, document.diffs, mods, dry_run=dry_run)
        except TemplateError as e:
            console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
            return EXIT_BAD_CONFIG
    finally:
        await connector.close()

    _print_result(result, dry_run)
    return EXIT_OK if result.success else EXIT_FAILURES


# ============================================================================
# Sync wrappers for argparse
# ============================================================================


def cmd_plan(args: argparse.Namespace) -> int:
    """Print the statements for a set of differences without running them."""
    return asyncio.run(_async_apply(args, dry_run=True))


def cmd_push(args: argparse.Namespace) -> int:
    """Execute the statements for a set of differences."""
    return asyncio.run(_async_apply(args, dry_run=False))


# ============================================================================
# Main entry point
# ============================================================================


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--environment",
        "-e",
        default="production",
        help="Environment section of the config file (default: production)",
    )
    parser.add_argument(
        "--schema",
        required=True,
        help="Schema the differences belong to",
    )
    parser.add_argument(
        "--diffs",
        required=True,
        help='Path to JSON file of differences ({"diffs": [...]})',
    )
    parser.add_argument(
        "--allow-unsafe",
        action="store_true",
        help="Permit unsafe changes regardless of configuration",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="db-applier",
        description="Plan or push declarative schema differences",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=DEFAULT_CONFIG_FILE,
        help=f"Path to config file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_plan = subparsers.add_parser(
        "plan",
        help=(
            "Show the statements that push would run (without a configured "
            "flavor, assumes a modern server)"
        ),
    )
    _add_target_arguments(p_plan)
    p_plan.set_defaults(func=cmd_plan)

    p_push = subparsers.add_parser(
        "push",
        help="Run the statements against the target",
    )
    _add_target_arguments(p_push)
    p_push.set_defaults(func=cmd_push)

    args = parser.parse_args(argv)
    _configure_logging(args.debug)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
