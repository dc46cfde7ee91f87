"""Pydantic models for applier configuration."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from db_applier.applier.target import ConnectionParams
from db_applier.schema.models import StatementModifiers

_ALGORITHMS = {"", "default", "inplace", "copy", "instant", "nocopy"}
_LOCKS = {"", "default", "none", "shared", "exclusive"}


# ============================================================================
# Configuration Models
# ============================================================================


class ApplierSettings(BaseModel):
    """Settings for one environment from applier.toml.

    Keys use the hyphenated spelling from the file (``ddl-wrapper``); the
    underscored field names are accepted too.

    Example:
        >>> settings = ApplierSettings.model_validate({"alter-wrapper-min-size": 1})
        >>> settings.alter_wrapper_min_size
        1
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    environment: str = "production"
    host: str = "127.0.0.1"
    port: int = 3306
    user: str = "root"
    password: str = ""
    connect_options: str = Field(default="", alias="connect-options")
    flavor: str = ""  # e.g. "mysql:5.7"; detected from the server when empty

    ddl_wrapper: str = Field(default="", alias="ddl-wrapper")
    alter_wrapper: str = Field(default="", alias="alter-wrapper")
    alter_wrapper_min_size: int = Field(default=0, ge=0, alias="alter-wrapper-min-size")

    allow_unsafe: bool = Field(default=False, alias="allow-unsafe")
    safe_below_size: int = Field(default=0, ge=0, alias="safe-below-size")
    alter_algorithm: str = Field(default="", alias="alter-algorithm")
    alter_lock: str = Field(default="", alias="alter-lock")
    foreign_key_checks: bool = Field(default=True, alias="foreign-key-checks")
    virtual_col_validation: bool = Field(default=False, alias="virtual-col-validation")

    @field_validator("alter_algorithm")
    @classmethod
    def _check_algorithm(cls, value: str) -> str:
        value = value.lower()
        if value not in _ALGORITHMS:
            raise ValueError(f"alter-algorithm must be one of {sorted(_ALGORITHMS - {''})}")
        return value

    @field_validator("alter_lock")
    @classmethod
    def _check_lock(cls, value: str) -> str:
        value = value.lower()
        if value not in _LOCKS:
            raise ValueError(f"alter-lock must be one of {sorted(_LOCKS - {''})}")
        return value

    def statement_modifiers(self) -> StatementModifiers:
        """Rendering modifiers described by these settings."""
        return StatementModifiers(
            allow_unsafe=self.allow_unsafe,
            algorithm_clause=self.alter_algorithm,
            lock_clause=self.alter_lock,
            skip_foreign_key_checks=not self.foreign_key_checks,
            virtual_col_validation=self.virtual_col_validation,
        )

    def connection_params(self) -> ConnectionParams:
        """Connection parameters exposed to wrapper templates."""
        return ConnectionParams(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            connect_options=self.connect_options,
            environment=self.environment,
        )


class ApplierConfig(BaseModel):
    """Complete configuration from applier.toml."""

    environments: dict[str, ApplierSettings]
