from __future__ import annotations

import os
from pathlib import Path

import tomllib
from pydantic import BaseModel, ConfigDict, Field

CONFIG_FILENAME = "bakeconst.toml"

# Environment override for the output directory, set by the build environment.
OUT_DIR_ENV = "BAKECONST_OUT_DIR"

DEFAULT_LAMBDA = 5
DEFAULT_MAX_ATTEMPTS = 64
FIXED_SEED = 1234567890


class HashSettings(BaseModel):
    """Tuning for the perfect-hash displacement search."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    lambda_: int = Field(
        default=DEFAULT_LAMBDA,
        alias="lambda",
        ge=1,
        description="Average number of keys per displacement bucket",
    )
    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        ge=1,
        description="Number of hash seeds tried before the search fails",
    )
    seed: int = Field(
        default=FIXED_SEED,
        description="Seed of the generator that draws hash keys",
    )


class BakeConfig(BaseModel):
    """Configuration for bakeconst unit generation."""

    model_config = ConfigDict(extra="forbid")

    output_dir: str = Field(
        default=".bakeconst",
        description="Output directory for the generated unit",
    )
    unit_name: str = Field(
        default="baked_symbols.py",
        description="File name of the generated unit",
    )
    script: str = Field(
        default="generate.py",
        description="Generation script exposing generate(artifact)",
    )
    hash: HashSettings = Field(
        default_factory=HashSettings,
        description="Perfect-hash search settings",
    )


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def resolve_output_dir(root: Path, output_dir: str) -> Path:
    """Resolve a config-provided output_dir safely within the project root.

    The config output_dir must be a non-empty relative path that remains
    within the project root after resolution. Absolute paths and paths
    that escape the root are rejected.
    """
    if not output_dir:
        msg = "output_dir must be a non-empty relative path"
        raise ConfigError(msg)

    if output_dir.startswith("~"):
        msg = "output_dir must be a relative path within the project root"
        raise ConfigError(msg)

    output_path = Path(output_dir)
    if output_path.is_absolute():
        msg = "output_dir must be a relative path within the project root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved_output = (resolved_root / output_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve output_dir '{output_dir}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved_output.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"output_dir '{output_dir}' escapes the project root"
        raise ConfigError(msg) from exc

    return resolved_output


def resolve_unit_path(root: Path, config: BakeConfig) -> Path:
    """Resolve where the unit lives, honouring the output-dir override."""
    override = os.environ.get(OUT_DIR_ENV)
    if override:
        out_dir = Path(override).expanduser().resolve()
    else:
        out_dir = resolve_output_dir(root, config.output_dir)
    return out_dir / config.unit_name


def load_config(root: Path) -> BakeConfig:
    """Load configuration from bakeconst.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return BakeConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return BakeConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
