"""Error taxonomy for statement construction and execution.

Construction-time errors (``UnsafeChangeError``, ``RenderError``,
``TemplateError``) are raised before anything touches the database or the
OS.  ``ExecutionError`` is raised by ``DDLStatement.execute()`` and carries
enough context to tell operators exactly which object failed.
"""


class ApplierError(Exception):
    """Base class for all db-applier errors."""

    pass


class UnsafeChangeError(ApplierError):
    """Raised when an unsafe difference is constructed without allow-unsafe."""

    def __init__(self, label: str, reason: str = "") -> None:
        self.label = label
        self.reason = reason
        message = f"Refusing to run unsafe change {label}"
        if reason:
            message += f": {reason}"
        message += " (set allow-unsafe to permit)"
        super().__init__(message)


class RenderError(ApplierError):
    """Raised when a difference cannot be rendered to SQL."""

    def __init__(self, label: str, reason: str) -> None:
        self.label = label
        self.reason = reason
        super().__init__(f"Unable to generate SQL for {label}: {reason}")


class TemplateError(ApplierError):
    """Raised for a misconfigured wrapper template.

    Treated as fatal to a whole batch: it is an operator configuration
    defect, not a problem with any particular difference.
    """

    pass


class ExecutionError(ApplierError):
    """Raised when a statement fails to execute.

    Attributes:
        label: Schema-qualified object label, e.g. ``analytics.pageviews``.
        statement: The SQL text or shell command that failed.
        exit_code: Exit status of the shell command, ``None`` for direct
            SQL execution or a command that never started.
        output: Captured combined stdout/stderr, or the database error text.
    """

    def __init__(
        self,
        label: str,
        statement: str,
        output: str = "",
        exit_code: int | None = None,
    ) -> None:
        self.label = label
        self.statement = statement
        self.output = output
        self.exit_code = exit_code

        lines = [f"Error executing statement for {label}"]
        if exit_code is not None:
            lines[0] += f" (exit code {exit_code})"
        lines.append(f"  Statement: {statement}")
        if output:
            lines.append(f"  Output: {output.rstrip()}")
        super().__init__("\n".join(lines))


class EnvironmentNotFoundError(ApplierError):
    """Raised when a named environment is missing from the config file."""

    pass
