"""Determinism verification for bakeconst units."""

from __future__ import annotations

import difflib
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from artifacts.write import generate_artifact
from rules.config import load_config


@dataclass(frozen=True)
class DeterminismResult:
    ok: bool
    unit: str
    diff: tuple[str, ...] = field(default_factory=tuple)


def verify_determinism(
    *, root: Path, unit: Path, script: Path | None = None
) -> DeterminismResult:
    """Verify that regenerating the unit reproduces it byte for byte.

    Runs the generation script again into a temporary directory and compares
    the fresh unit against the existing one.

    Args:
        root: Project root holding the generation script.
        unit: Existing unit to verify.
        script: Optional generation script; defaults to the configured one.

    Returns:
        DeterminismResult with ok status and a unified diff of any mismatch.

    Raises:
        FileNotFoundError: If the unit does not exist.
        IsADirectoryError: If the unit path is a directory.
    """
    if not unit.exists():
        msg = f"Unit does not exist: {unit}"
        raise FileNotFoundError(msg)
    if unit.is_dir():
        msg = f"Unit path is a directory: {unit}"
        raise IsADirectoryError(msg)

    config = load_config(root)
    with tempfile.TemporaryDirectory() as temp_dir:
        summary = generate_artifact(
            root=root, script=script, out_dir=Path(temp_dir), config=config
        )
        regenerated = Path(str(summary["unit"])).read_bytes()

    original = unit.read_bytes()
    if original == regenerated:
        return DeterminismResult(ok=True, unit=str(unit))

    diff = difflib.unified_diff(
        original.decode("utf-8", errors="replace").splitlines(),
        regenerated.decode("utf-8", errors="replace").splitlines(),
        fromfile=str(unit),
        tofile="regenerated",
        lineterm="",
    )
    return DeterminismResult(ok=False, unit=str(unit), diff=tuple(diff))
