"""Resolved execution environment for one (instance, schema) pair.

``TargetContext`` enumerates exactly what statement construction and
execution read: the schema name, the server flavor, wrapper templates and
thresholds, connection parameters exposed to templates, and the two
side-effecting collaborators (a ``Connector`` for direct SQL and a
``ShellRunner`` for wrapper commands).  The caller owns it; the applier
only reads from it.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict

from db_applier.adapters.base import DatabaseClient
from db_applier.applier.shellout import ShellRunner, SubprocessRunner

_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")
_VENDORS = ("mysql", "mariadb", "percona")


class Flavor(BaseModel):
    """Server vendor and version.

    A flavor with ``major == 0`` is unknown and is assumed to be a modern
    server.

    Example:
        >>> Flavor.parse("mysql:5.5").supports_alter_clauses
        False
        >>> Flavor.parse("10.4.12-MariaDB-log").vendor
        'mariadb'
    """

    model_config = ConfigDict(frozen=True)

    vendor: Literal["mysql", "mariadb", "percona"] = "mysql"
    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, value: str) -> "Flavor":
        """Parse ``vendor:major.minor`` or a server ``VERSION()`` string.

        Raises:
            ValueError: If no version number can be found in *value*.
        """
        text = value.strip().lower()
        vendor = "mysql"
        prefix, sep, rest = text.partition(":")
        if sep and prefix in _VENDORS:
            vendor, text = prefix, rest
        elif "mariadb" in text:
            vendor = "mariadb"
        elif "percona" in text:
            vendor = "percona"

        match = _VERSION_RE.search(text)
        if not match:
            raise ValueError(f"Unable to parse server flavor from {value!r}")
        return cls(
            vendor=vendor,
            major=int(match.group(1)),
            minor=int(match.group(2)),
            patch=int(match.group(3) or 0),
        )

    @property
    def known(self) -> bool:
        return self.major > 0

    @property
    def supports_alter_clauses(self) -> bool:
        """True if ALTER TABLE accepts ALGORITHM= and LOCK= clauses."""
        if not self.known:
            return True
        if self.vendor == "mariadb":
            return self.major >= 10
        return (self.major, self.minor) >= (5, 6)

    @property
    def supports_validation_clause(self) -> bool:
        """True if ALTER TABLE accepts WITH VALIDATION."""
        if not self.known:
            return True
        if self.vendor == "mariadb":
            return False
        return (self.major, self.minor) >= (5, 7)

    def __str__(self) -> str:
        if not self.known:
            return f"{self.vendor}:unknown"
        return f"{self.vendor}:{self.major}.{self.minor}"


class ConnectionParams(BaseModel):
    """Connection parameters made available to wrapper templates."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = 3306
    user: str = "root"
    password: str = ""
    connect_options: str = ""
    environment: str = "production"

    def template_variables(self) -> dict[str, str]:
        return {
            "HOST": self.host,
            "PORT": str(self.port),
            "USER": self.user,
            "PASSWORD": self.password,
            "CONNOPTS": self.connect_options,
            "ENVIRONMENT": self.environment,
        }


class Connector(Protocol):
    """Hands out database clients scoped to one schema.

    An empty *schema_name* yields a client with no default database, used
    for database-level statements.
    """

    def connect(
        self,
        schema_name: str,
        session_variables: Mapping[str, str] | None = None,
    ) -> DatabaseClient: ...


@dataclass(frozen=True)
class TargetContext:
    """Everything the applier reads about one (instance, schema) target.

    Attributes:
        schema_name: Schema the differences belong to.
        connector: Source of schema-scoped database clients.
        flavor: Server vendor and version, used for clause gating.
        connection: Connection parameters exposed to wrapper templates.
        ddl_wrapper: Template for routing any DDL through a command; empty
            means unconfigured.
        alter_wrapper: Template for ALTER TABLE on large tables; empty means
            unconfigured.
        alter_wrapper_min_size: Row estimate at or above which
            ``alter_wrapper`` is used.
        safe_below_size: Row estimate below which unsafe table changes are
            permitted; ``0`` disables.
        runner: Runs wrapper commands.
    """

    schema_name: str
    connector: Connector
    flavor: Flavor = field(default_factory=Flavor)
    connection: ConnectionParams = field(default_factory=ConnectionParams)
    ddl_wrapper: str = ""
    alter_wrapper: str = ""
    alter_wrapper_min_size: int = 0
    safe_below_size: int = 0
    runner: ShellRunner = field(default_factory=SubprocessRunner)
