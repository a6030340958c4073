"""Rendering of an artifact into the source text of one unit."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from contract.artifacts import (
    ALL_NAME,
    DECLARATIONS_NAME,
    DIGEST_PREFIX,
    GROUPS_NAME,
    SCHEMA_VERSION_NAME,
    UNIT_HEADER,
    UNIT_SCHEMA_VERSION,
    body_digest,
)
from contract.errors import NameCollisionError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from artifacts.aggregator import Artifact
    from artifacts.models.declaration import Declaration

INDENT = "    "


def _required_imports(declarations: Iterable[Declaration]) -> set[tuple[str, str]]:
    imports: set[tuple[str, str]] = set()
    for declaration in declarations:
        imports.update(declaration.imports)
        if declaration.kind == "const":
            imports.add(("typing", "Final"))
        elif declaration.kind == "type":
            imports.add(("dataclasses", "dataclass"))
    return imports


def _import_lines(imports: set[tuple[str, str]]) -> list[str]:
    by_module: dict[str, set[str]] = defaultdict(set)
    for module, name in imports:
        by_module[module].add(name)
    return [
        f"from {module} import {', '.join(sorted(names))}"
        for module, names in sorted(by_module.items())
    ]


def _check_imported_names(
    imports: set[tuple[str, str]], declared: Iterable[str]
) -> None:
    # A declaration must not shadow a name the unit itself imports.
    sources: dict[str, str] = {}
    for module, name in sorted(imports):
        if sources.setdefault(name, module) != module:
            raise NameCollisionError(name)
    for name in declared:
        if name in sources:
            raise NameCollisionError(name)


def _render_declaration(declaration: Declaration) -> list[str]:
    name = declaration.name
    if declaration.kind == "const":
        return [f"{name}: Final[{declaration.type_text}] = {declaration.fragment}"]
    if declaration.kind == "static":
        return [f"{name}: {declaration.type_text} = {declaration.fragment}"]
    if declaration.kind == "fn":
        return [
            f"def {name}() -> {declaration.type_text}:",
            f"{INDENT}return {declaration.fragment}",
        ]
    lines = ["@dataclass(frozen=True)", f"class {name}:"]
    if not declaration.fields:
        lines.append(f"{INDENT}pass")
    lines.extend(f"{INDENT}{field.name}: {field.type_text}" for field in declaration.fields)
    return lines


def render_body(artifact: Artifact) -> str:
    """Render everything below the header lines."""
    declarations = artifact.declarations
    names = [declaration.name for declaration in declarations]
    groups = artifact.groups
    imports = _required_imports(declarations)
    _check_imported_names(imports, [*names, *groups])

    lines = ["from __future__ import annotations", ""]
    lines.extend(_import_lines(imports))
    lines.append("")
    lines.append(f"{SCHEMA_VERSION_NAME} = {UNIT_SCHEMA_VERSION}")
    manifest = {declaration.name: declaration.kind for declaration in declarations}
    lines.append(f"{DECLARATIONS_NAME} = {manifest!r}")
    lines.append(f"{GROUPS_NAME} = {groups!r}")
    lines.append(f"{ALL_NAME} = {names!r}")

    for declaration in declarations:
        # Multi-line bindings get the two blank lines PEP 8 asks for.
        lines.extend(["", ""] if declaration.kind in ("fn", "type") else [""])
        lines.extend(_render_declaration(declaration))
    return "\n".join(lines) + "\n"


def render_unit(artifact: Artifact, filename: str = "<unit>") -> str:
    """Render the complete unit and check that it compiles.

    Raises:
        NameCollisionError: If a declaration shadows a name the unit imports.
        SyntaxError: If the rendered unit does not compile.
    """
    body = render_body(artifact)
    source = f"{UNIT_HEADER}\n{DIGEST_PREFIX}{body_digest(body)}\n{body}"
    compile(source, filename, "exec")
    return source


__all__ = ["render_body", "render_unit"]
