"""Tests for wrapper template rendering and the subprocess runner."""

import shlex
import shutil

import pytest

from db_applier.applier.shellout import (
    ShellResult,
    SubprocessRunner,
    escape_value,
    render_command,
)
from db_applier.errors import TemplateError

requires_sh = pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX shell")


# ------------------------------------------------------------------
# escape_value
# ------------------------------------------------------------------


class TestEscapeValue:
    """Verify POSIX quoting of placeholder values."""

    @pytest.mark.parametrize(
        "value",
        ["analytics", "pageviews", "", "127.0.0.1", "a/b@c%d=e:f,g+h-i", "under_score"],
    )
    def test_inert_values_left_bare(self, value: str) -> None:
        """Values made of shell-inert characters are not quoted."""
        assert escape_value(value) == value

    def test_spaces_are_quoted(self) -> None:
        assert escape_value("ADD COLUMN x") == "'ADD COLUMN x'"

    def test_embedded_single_quote(self) -> None:
        """Each embedded quote closes, escapes, and reopens the quoting."""
        assert escape_value("it's") == "'it'\\''s'"

    def test_backticks_and_dollars_are_quoted(self) -> None:
        assert escape_value("`$(rm -rf /)`") == "'`$(rm -rf /)`'"


# ------------------------------------------------------------------
# render_command
# ------------------------------------------------------------------


class TestRenderCommand:
    """Verify placeholder substitution."""

    def test_substitutes_placeholders(self) -> None:
        command = render_command(
            "echo ddl-wrapper {SCHEMA}.{NAME} {TYPE} {CLASS}",
            {"SCHEMA": "analytics", "NAME": "rollups", "TYPE": "ALTER", "CLASS": "TABLE"},
            raw={"TYPE", "CLASS"},
        )
        assert command == "echo ddl-wrapper analytics.rollups ALTER TABLE"

    def test_empty_value_renders_as_nothing(self) -> None:
        command = render_command("echo {SCHEMA}.{NAME}", {"SCHEMA": "", "NAME": "analytics"})
        assert command == "echo .analytics"

    def test_raw_values_not_quoted(self) -> None:
        command = render_command("echo {TYPE}", {"TYPE": "a b"}, raw={"TYPE"})
        assert command == "echo a b"

    def test_quoted_values_quoted(self) -> None:
        command = render_command("echo {TYPE}", {"TYPE": "a b"})
        assert command == "echo 'a b'"

    def test_placeholder_used_twice(self) -> None:
        command = render_command("{NAME}-{NAME}", {"NAME": "x"})
        assert command == "x-x"

    def test_template_without_placeholders(self) -> None:
        assert render_command("true", {}) == "true"

    def test_lowercase_braces_left_alone(self) -> None:
        """Only upper-case tokens are placeholders, so awk programs survive."""
        command = render_command("awk '{print $1}' {NAME}", {"NAME": "t"})
        assert command == "awk '{print $1}' t"

    def test_unknown_placeholder_raises(self) -> None:
        with pytest.raises(TemplateError, match=r"\{BOGUS\}"):
            render_command("echo {SCHEMA} {BOGUS}", {"SCHEMA": "analytics"})

    @pytest.mark.parametrize("token", ["{Schema}", "{SCHEMa}", "{Table_name}"])
    def test_mixed_case_placeholder_raises(self, token: str) -> None:
        with pytest.raises(TemplateError, match="must be upper case"):
            render_command(f"echo {token}", {"SCHEMA": "analytics", "TABLE_NAME": "t"})

    def test_unterminated_placeholder_raises(self) -> None:
        with pytest.raises(TemplateError, match="Unterminated"):
            render_command("echo {SCHEMA", {"SCHEMA": "analytics"})

    def test_empty_template_raises(self) -> None:
        with pytest.raises(TemplateError, match="empty"):
            render_command("  ", {})


class TestQuotingRoundTrip:
    """A POSIX shell must parse each quoted value back to the original text."""

    CLAUSES = [
        "ADD COLUMN `domain` varchar(40) NOT NULL DEFAULT 'skeema.io'",
        "MODIFY COLUMN `note` text DEFAULT ''",
        "COMMENT 'it''s \"quoted\"'",
        "ADD COLUMN `a b` int, DROP COLUMN `c`",
        "ALTER COLUMN `x` SET DEFAULT '$HOME; echo pwned'",
        "'",
        "''",
        "\\' trailing backslash \\",
    ]

    @pytest.mark.parametrize("clause", CLAUSES)
    def test_shlex_round_trip(self, clause: str) -> None:
        command = render_command("wrapper {SCHEMA} {CLAUSES}", {"SCHEMA": "analytics", "CLAUSES": clause})
        assert shlex.split(command) == ["wrapper", "analytics", clause]

    @requires_sh
    @pytest.mark.parametrize("clause", CLAUSES)
    async def test_real_shell_round_trip(self, clause: str) -> None:
        command = render_command("printf '%s' {CLAUSES}", {"CLAUSES": clause})
        result = await SubprocessRunner().run(command)
        assert result.ok
        assert result.output == clause


# ------------------------------------------------------------------
# SubprocessRunner
# ------------------------------------------------------------------


@requires_sh
class TestSubprocessRunner:
    """Verify process spawning and output capture."""

    async def test_captures_stdout(self) -> None:
        result = await SubprocessRunner().run("echo hello")
        assert result == ShellResult(exit_code=0, output="hello\n")

    async def test_merges_stderr(self) -> None:
        result = await SubprocessRunner().run("echo oops 1>&2")
        assert result.output == "oops\n"

    async def test_reports_non_zero_exit(self) -> None:
        result = await SubprocessRunner().run("echo failing; exit 3")
        assert result.exit_code == 3
        assert not result.ok
        assert result.output == "failing\n"

    async def test_missing_shell_raises_oserror(self) -> None:
        with pytest.raises(OSError):
            await SubprocessRunner(shell="/nonexistent/shell").run("true")
