"""Configuration management: environments, TOML loading, and config models.

Usage:
    >>> from db_applier.config import load_applier_config, get_environment, ApplierSettings
"""

from db_applier.config.loader import get_environment, load_applier_config, parse_connect_options
from db_applier.config.models import ApplierConfig, ApplierSettings

__all__ = [
    "load_applier_config",
    "get_environment",
    "parse_connect_options",
    "ApplierConfig",
    "ApplierSettings",
]
