"""Artifact aggregation and unit generation entry points."""

from __future__ import annotations

from typing import TYPE_CHECKING

from artifacts.aggregator import Artifact
from artifacts.exports import (
    write_array_fn,
    write_const,
    write_const_array,
    write_consts,
    write_fn,
    write_fns,
    write_static,
    write_static_array,
    write_statics,
    write_struct,
    write_vector_fn,
)

if TYPE_CHECKING:
    from pathlib import Path

    from rules.config import BakeConfig


def generate_artifact(
    *,
    root: Path,
    script: Path | None = None,
    out_dir: Path | None = None,
    config: BakeConfig | None = None,
) -> dict[str, object]:
    """Generate the unit via lazy import to avoid package import cycles."""
    from artifacts.write import generate_artifact as _generate_artifact

    return _generate_artifact(root=root, script=script, out_dir=out_dir, config=config)


__all__ = [
    "Artifact",
    "generate_artifact",
    "write_array_fn",
    "write_const",
    "write_const_array",
    "write_consts",
    "write_fn",
    "write_fns",
    "write_static",
    "write_static_array",
    "write_statics",
    "write_struct",
    "write_vector_fn",
]
