from __future__ import annotations

import contextlib
import os
import runpy
import sys
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from artifacts.aggregator import Artifact
from artifacts.render import render_unit
from contract.artifacts import SCRIPT_RUN_NAME
from logs import get_logger
from rules.config import ConfigError, load_config, resolve_unit_path

if TYPE_CHECKING:
    from collections.abc import Iterator

    from emit.registry import Registry
    from rules.config import BakeConfig, HashSettings

logger = get_logger("artifacts")


def flush_artifact(artifact: Artifact, path: Path) -> Path:
    """Materialize ``artifact`` at ``path``, replacing any previous unit.

    The unit is written to a temporary file next to ``path`` and moved into
    place with ``os.replace``, so readers see either the old unit or the new
    one. On failure the temporary file is removed and the old unit is left
    untouched.
    """
    source = render_unit(artifact, filename=str(path))
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(source)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            tmp_path.unlink()
        raise
    artifact.close()
    logger.info("Flushed %d declaration(s) to %s", len(artifact), path)
    return path


@contextlib.contextmanager
def open_artifact(
    path: Path,
    *,
    registry: Registry | None = None,
    hash_settings: HashSettings | None = None,
) -> Iterator[Artifact]:
    """Scope one generation run: the artifact is flushed only if the body succeeds."""
    artifact = Artifact(registry=registry, hash_settings=hash_settings)
    yield artifact
    flush_artifact(artifact, path)


@contextlib.contextmanager
def _project_on_path(root: Path) -> Iterator[None]:
    # The script and the modules it imports live under the project root.
    entry = str(root)
    sys.path.insert(0, entry)
    try:
        yield
    finally:
        with contextlib.suppress(ValueError):
            sys.path.remove(entry)


def _load_generate(script: Path):
    if not script.is_file():
        msg = f"Generation script not found: {script}"
        raise ConfigError(msg)
    namespace = runpy.run_path(str(script), run_name=SCRIPT_RUN_NAME)
    generate = namespace.get("generate")
    if not callable(generate):
        msg = f"Generation script {script} doesn't define generate(artifact)"
        raise ConfigError(msg)
    return generate


def generate_artifact(
    *,
    root: Path,
    script: Path | None = None,
    out_dir: Path | None = None,
    config: BakeConfig | None = None,
    registry: Registry | None = None,
) -> dict[str, object]:
    """Run a generation script and flush the unit it declares.

    Args:
        root: Project root holding ``bakeconst.toml`` and the script
        script: Generation script; defaults to the configured one
        out_dir: Output directory; defaults to the configured one
        config: Optional configuration, loaded from ``root`` when omitted
        registry: Capability registry; defaults to the process-wide one

    Returns:
        Dictionary with the unit path and declaration/group counts.
    """
    if config is None:
        config = load_config(root)

    if out_dir is None:
        unit_path = resolve_unit_path(root, config)
    else:
        unit_path = Path(out_dir) / config.unit_name

    if script is None:
        script = root / config.script

    with _project_on_path(root):
        generate = _load_generate(Path(script))
        logger.info("Running %s", script)
        with open_artifact(
            unit_path, registry=registry, hash_settings=config.hash
        ) as artifact:
            generate(artifact)

    return {
        "unit": str(unit_path),
        "declaration_count": len(artifact),
        "group_count": len(artifact.groups),
    }


__all__ = ["flush_artifact", "generate_artifact", "open_artifact"]
