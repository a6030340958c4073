"""Configuration rules for bakeconst."""

from rules.config import (
    CONFIG_FILENAME,
    BakeConfig,
    ConfigError,
    HashSettings,
    load_config,
    resolve_output_dir,
    resolve_unit_path,
)

__all__ = [
    "CONFIG_FILENAME",
    "BakeConfig",
    "ConfigError",
    "HashSettings",
    "load_config",
    "resolve_output_dir",
    "resolve_unit_path",
]
