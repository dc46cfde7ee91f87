"""Shell command templating and execution.

Wrapper templates are plain strings with ``{PLACEHOLDER}`` tokens.
``render_command`` substitutes them with shell-safe values: anything that
could be reinterpreted by ``/bin/sh`` is single-quoted, with embedded
single quotes written as ``'\\''``.  Labels generated from a closed set
(``{TYPE}``, ``{CLASS}``) may be passed through raw.

Running the rendered command is isolated behind the ``ShellRunner``
Protocol so tests can substitute a fake.

Usage:
    from db_applier.applier.shellout import SubprocessRunner, render_command

    command = render_command(
        "echo {SCHEMA}.{TABLE} {CLAUSES}",
        {"SCHEMA": "analytics", "TABLE": "pageviews", "CLAUSES": "ADD COLUMN `x` int"},
    )
    # "echo analytics.pageviews 'ADD COLUMN `x` int'"
    result = await SubprocessRunner().run(command)
"""

import asyncio
import re
from collections.abc import Collection, Mapping
from typing import Protocol

from pydantic import BaseModel

from db_applier.errors import TemplateError

# Characters that never need quoting in a POSIX shell word
_NO_QUOTES_NEEDED = re.compile(r"^[\w/@%=:.,+-]*$", re.ASCII)

_PLACEHOLDER_RE = re.compile(r"\{([A-Z][A-Z0-9_]*)\}")
_MIXED_CASE_RE = re.compile(r"\{[A-Z][A-Za-z0-9_]*[a-z][A-Za-z0-9_]*\}")
_UNTERMINATED_RE = re.compile(r"\{[A-Z][A-Z0-9_]*(?![A-Z0-9_}])")


def escape_value(value: str) -> str:
    """Quote *value* so that a POSIX shell parses it back as one word.

    Values made only of shell-inert characters (including the empty string)
    are returned unchanged.

    Example:
        >>> escape_value("analytics")
        'analytics'
        >>> escape_value("DEFAULT 'x'")
        "'DEFAULT '\\\\''x'\\\\'''"
    """
    if _NO_QUOTES_NEEDED.match(value):
        return value
    return "'" + value.replace("'", "'\\''") + "'"


def render_command(
    template: str,
    variables: Mapping[str, str],
    raw: Collection[str] = (),
) -> str:
    """Render a wrapper template into a literal command line.

    Args:
        template: Command template, e.g. ``"pt-osc --alter {CLAUSES} D={SCHEMA},t={TABLE}"``.
        variables: Placeholder name (upper case, without braces) to value.
        raw: Placeholder names whose values are inserted verbatim.

    Returns:
        The command line with every placeholder substituted.

    Raises:
        TemplateError: If the template is empty, has an unterminated
            placeholder, has a placeholder in mixed case, or references a
            placeholder missing from *variables*.
    """
    if not template.strip():
        raise TemplateError("Wrapper template is empty")

    match = _MIXED_CASE_RE.search(template)
    if match:
        raise TemplateError(
            f"Placeholder {match.group(0)} must be upper case in template: {template}"
        )

    match = _UNTERMINATED_RE.search(template)
    if match:
        raise TemplateError(
            f"Unterminated placeholder {match.group(0)!r} in template: {template}"
        )

    unknown: list[str] = []

    def _substitute(m: re.Match[str]) -> str:
        name = m.group(1)
        if name not in variables:
            unknown.append(name)
            return m.group(0)
        value = variables[name]
        return value if name in raw else escape_value(value)

    command = _PLACEHOLDER_RE.sub(_substitute, template)
    if unknown:
        names = ", ".join("{" + name + "}" for name in unknown)
        raise TemplateError(f"Unknown placeholder {names} in template: {template}")
    return command


# ------------------------------------------------------------------
# Execution
# ------------------------------------------------------------------


class ShellResult(BaseModel):
    """Outcome of one command run: exit status and combined output."""

    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ShellRunner(Protocol):
    """Runs one command line synchronously and captures its output."""

    async def run(self, command: str) -> ShellResult:
        """Run *command* through a shell and wait for it to exit.

        Raises:
            OSError: If the shell process cannot be started.
        """
        ...


class SubprocessRunner:
    """``ShellRunner`` that spawns ``/bin/sh -c <command>``.

    stderr is merged into stdout, matching what an operator would see in a
    terminal.
    """

    def __init__(self, shell: str = "/bin/sh", env: Mapping[str, str] | None = None) -> None:
        self._shell = shell
        self._env = dict(env) if env is not None else None

    async def run(self, command: str) -> ShellResult:
        proc = await asyncio.create_subprocess_exec(
            self._shell,
            "-c",
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            env=self._env,
        )
        stdout, _ = await proc.communicate()
        return ShellResult(
            exit_code=proc.returncode if proc.returncode is not None else -1,
            output=stdout.decode(errors="replace"),
        )
