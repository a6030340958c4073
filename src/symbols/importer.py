"""Consumer-side import of declared symbols.

``use_symbols("CONST_A", "TABLE")`` returns (and optionally binds) the values
declared by the last flushed unit. Requested names are checked against the
unit's manifest before anything is bound.
"""

from __future__ import annotations

import hashlib
import importlib.util
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contract.artifacts import DECLARATIONS_NAME, GROUPS_NAME
from contract.errors import MissingSymbolError
from logs import get_logger
from rules.config import load_config, resolve_unit_path

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from types import ModuleType

logger = get_logger("symbols")

_loaded: dict[Path, tuple[tuple[int, int, int], SymbolTable]] = {}


def _module_name(path: Path) -> str:
    suffix = hashlib.sha256(str(path).encode("utf-8")).hexdigest()[:12]
    return f"__bakeconst_unit_{suffix}__"


def load_unit(path: Path) -> ModuleType:
    """Import the unit at ``path`` as a module.

    The module is registered in ``sys.modules`` while it executes so that
    record types declared in it resolve their own module.
    """
    if not path.is_file():
        msg = f"Unit not found: {path} (run 'bakeconst generate' first)"
        raise FileNotFoundError(msg)
    name = _module_name(path)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        msg = f"Cannot load unit from {path}"
        raise ImportError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module


class SymbolTable:
    """The declarations and groups of one loaded unit."""

    def __init__(self, module: ModuleType, path: Path) -> None:
        self.module = module
        self.path = path
        self.declarations: dict[str, str] = dict(getattr(module, DECLARATIONS_NAME, {}))
        self.groups: dict[str, tuple[str, ...]] = dict(getattr(module, GROUPS_NAME, {}))

    def expand(self, names: tuple[str, ...]) -> list[str]:
        """Expand group aliases into their members, keeping request order.

        Raises:
            MissingSymbolError: Listing every requested name the unit lacks.
        """
        expanded: list[str] = []
        missing: list[str] = []
        for name in names:
            if name in self.groups:
                members = self.groups[name]
            elif name in self.declarations:
                members = (name,)
            else:
                missing.append(name)
                continue
            expanded.extend(member for member in members if member not in expanded)
        if missing:
            raise MissingSymbolError(missing, str(self.path))
        return expanded

    def resolve(self, *names: str) -> dict[str, Any]:
        return {name: getattr(self.module, name) for name in self.expand(names)}


def symbol_table(path: Path) -> SymbolTable:
    """Return the symbol table of ``path``, reloading when the unit changed."""
    path = path.resolve()
    stat = path.stat() if path.exists() else None
    stamp = (
        (stat.st_ino, stat.st_mtime_ns, stat.st_size) if stat is not None else (0, 0, 0)
    )
    cached = _loaded.get(path)
    if cached is not None and cached[0] == stamp:
        return cached[1]
    table = SymbolTable(load_unit(path), path)
    _loaded[path] = (stamp, table)
    logger.debug("Loaded %d declaration(s) from %s", len(table.declarations), path)
    return table


def default_unit_path(root: Path | None = None) -> Path:
    root = Path.cwd() if root is None else Path(root)
    return resolve_unit_path(root, load_config(root))


def use_symbols(
    *names: str,
    unit: Path | None = None,
    root: Path | None = None,
    namespace: MutableMapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Bind the requested declarations, expanding group aliases.

    Args:
        names: Declaration names or group aliases
        unit: Path of the unit; defaults to the configured unit under ``root``
        root: Project root; defaults to the working directory
        namespace: Mapping to bind the values into, e.g. ``globals()``

    Returns:
        Mapping of each bound name to its value. Accessor declarations are
        bound as their zero-argument functions.

    Raises:
        MissingSymbolError: If any requested name was never declared; nothing
            is bound in that case.
    """
    path = Path(unit) if unit is not None else default_unit_path(root)
    values = symbol_table(path).resolve(*names)
    if namespace is not None:
        namespace.update(values)
    return values


def clear_cache() -> None:
    """Forget loaded units so the next use re-imports them."""
    for path in list(_loaded):
        sys.modules.pop(_module_name(path), None)
    _loaded.clear()


__all__ = [
    "SymbolTable",
    "clear_cache",
    "default_unit_path",
    "load_unit",
    "symbol_table",
    "use_symbols",
]
