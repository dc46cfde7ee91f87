"""Configuration loading for db-applier.

``applier.toml`` holds an optional ``[defaults]`` table merged under every
``[environments.<name>]`` table:

    [defaults]
    host = "127.0.0.1"
    user = "root"
    alter-algorithm = "inplace"

    [environments.production]
    alter-wrapper = "pt-online-schema-change --alter {CLAUSES} D={SCHEMA},t={TABLE} --execute"
    alter-wrapper-min-size = 1000000
"""

import os
import tomllib
from pathlib import Path

from db_applier.config.models import ApplierConfig, ApplierSettings
from db_applier.errors import EnvironmentNotFoundError

DEFAULT_CONFIG_FILE = "applier.toml"
PASSWORD_ENV_VAR = "APPLIER_PASSWORD"


def load_applier_config(config_path: str | Path | None = None) -> ApplierConfig:
    """Load applier configuration from a TOML file.

    Args:
        config_path: Path to applier.toml (default: ``./applier.toml``).

    Returns:
        ApplierConfig with one ``ApplierSettings`` per environment.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config format is invalid.
    """
    path = Path(config_path) if config_path is not None else Path.cwd() / DEFAULT_CONFIG_FILE

    if not path.exists():
        raise FileNotFoundError(f"Applier config not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    defaults = data.get("defaults", {})
    environments_data = data.get("environments", {})
    if not environments_data:
        raise ValueError(f"No [environments.<name>] tables defined in {path.name}")

    environments = {}
    for name, env_data in environments_data.items():
        merged = {**defaults, **env_data, "environment": name}
        environments[name] = ApplierSettings.model_validate(merged)

    return ApplierConfig(environments=environments)


def get_environment(config: ApplierConfig, name: str) -> ApplierSettings:
    """Look up one environment's settings.

    An empty password is filled from the ``APPLIER_PASSWORD`` environment
    variable when it is set.

    Raises:
        EnvironmentNotFoundError: If *name* is not configured.
    """
    if name not in config.environments:
        available = ", ".join(sorted(config.environments)) or "(none)"
        raise EnvironmentNotFoundError(
            f"Environment '{name}' not found in config. Available: {available}"
        )
    settings = config.environments[name]
    env_password = os.environ.get(PASSWORD_ENV_VAR)
    if not settings.password and env_password:
        settings = settings.model_copy(update={"password": env_password})
    return settings


def parse_connect_options(options: str) -> dict[str, str]:
    """Split ``connect-options`` into session variable assignments.

    Commas inside single or double quotes do not split.

    Example:
        >>> parse_connect_options("sql_mode='STRICT_ALL_TABLES,NO_ZERO_DATE',wait_timeout=60")
        {'sql_mode': "'STRICT_ALL_TABLES,NO_ZERO_DATE'", 'wait_timeout': '60'}

    Raises:
        ValueError: If an option has no ``=`` or a quote is left open.
    """
    assignments: list[str] = []
    current: list[str] = []
    quote = ""
    for char in options:
        if quote:
            if char == quote:
                quote = ""
        elif char in ("'", '"'):
            quote = char
        elif char == ",":
            assignments.append("".join(current))
            current = []
            continue
        current.append(char)
    if quote:
        raise ValueError(f"Unterminated quote in connect-options: {options}")
    assignments.append("".join(current))

    result: dict[str, str] = {}
    for assignment in assignments:
        assignment = assignment.strip()
        if not assignment:
            continue
        name, sep, value = assignment.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid connect-options entry: {assignment!r}")
        result[name.strip()] = value.strip()
    return result
