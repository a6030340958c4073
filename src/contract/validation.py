"""Static validation of a flushed unit.

The unit is parsed, never executed: validating must not import user types or
run the code that reconstructs the values.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from contract.artifacts import (
    ALL_NAME,
    BINDING_KINDS,
    DECLARATIONS_NAME,
    DIGEST_PREFIX,
    GROUPS_NAME,
    SCHEMA_VERSION_NAME,
    UNIT_HEADER,
    UNIT_SCHEMA_VERSION,
    body_digest,
)

if TYPE_CHECKING:
    from pathlib import Path

_RESERVED = (SCHEMA_VERSION_NAME, DECLARATIONS_NAME, GROUPS_NAME, ALL_NAME)


@dataclass(frozen=True)
class ValidationMessage:
    artifact: str
    path: Path
    message: str
    line: int | None = None

    def location(self) -> str:
        if self.line is None:
            return str(self.path)
        return f"{self.path}:{self.line}"

    def to_dict(self) -> dict[str, object]:
        return {
            "artifact": self.artifact,
            "path": str(self.path),
            "line": self.line,
            "message": self.message,
        }


@dataclass
class ValidationResult:
    errors: list[ValidationMessage] = field(default_factory=list)
    warnings: list[ValidationMessage] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class UnitManifest:
    """The reserved names of a unit, read without executing it."""

    schema_version: int | None
    declarations: dict[str, str]
    groups: dict[str, tuple[str, ...]]
    exported: list[str] | None
    bindings: dict[str, tuple[str, int]]


def split_header(source: str) -> tuple[str | None, str]:
    """Return the recorded digest and the body below the header lines."""
    header, _, rest = source.partition("\n")
    if header != UNIT_HEADER:
        return None, source
    digest_line, _, body = rest.partition("\n")
    if not digest_line.startswith(DIGEST_PREFIX):
        return None, rest
    return digest_line[len(DIGEST_PREFIX) :].strip(), body


def _binding_kind(node: ast.stmt) -> tuple[str, str] | None:
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
        annotation = node.annotation
        if (
            isinstance(annotation, ast.Subscript)
            and isinstance(annotation.value, ast.Name)
            and annotation.value.id == "Final"
        ):
            return node.target.id, "const"
        return node.target.id, "static"
    if isinstance(node, ast.FunctionDef):
        args = node.args
        takes_args = (
            args.posonlyargs or args.args or args.kwonlyargs or args.vararg or args.kwarg
        )
        return node.name, "fn" if not takes_args else "function"
    if isinstance(node, ast.ClassDef):
        return node.name, "type"
    return None


def _literal(node: ast.expr) -> Any:
    try:
        return ast.literal_eval(node)
    except ValueError:
        return None


def read_manifest(tree: ast.Module) -> UnitManifest:
    reserved: dict[str, Any] = {}
    bindings: dict[str, tuple[str, int]] = {}
    for node in tree.body:
        if (
            isinstance(node, ast.Assign)
            and len(node.targets) == 1
            and isinstance(node.targets[0], ast.Name)
            and node.targets[0].id in _RESERVED
        ):
            reserved[node.targets[0].id] = _literal(node.value)
            continue
        binding = _binding_kind(node)
        if binding is not None:
            name, kind = binding
            bindings[name] = (kind, node.lineno)

    declarations = reserved.get(DECLARATIONS_NAME)
    groups = reserved.get(GROUPS_NAME)
    exported = reserved.get(ALL_NAME)
    schema_version = reserved.get(SCHEMA_VERSION_NAME)
    return UnitManifest(
        schema_version=schema_version if isinstance(schema_version, int) else None,
        declarations=declarations if isinstance(declarations, dict) else {},
        groups=(
            {name: tuple(members) for name, members in groups.items()}
            if isinstance(groups, dict)
            else {}
        ),
        exported=list(exported) if isinstance(exported, (list, tuple)) else None,
        bindings=bindings,
    )


def validate_unit(path: Path, *, strict_schema_version: bool = False) -> ValidationResult:
    """Check a unit's digest, manifest and bindings against each other."""
    result = ValidationResult()
    name = path.name

    def error(message: str, line: int | None = None) -> None:
        result.errors.append(
            ValidationMessage(artifact=name, path=path, message=message, line=line)
        )

    if not path.is_file():
        error("Unit file does not exist.")
        return result

    try:
        source = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        error(f"Failed to read file: invalid UTF-8 ({exc}).")
        return result
    except OSError as exc:
        error(f"Failed to read file: {exc}.")
        return result

    try:
        tree = ast.parse(source, filename=str(path))
    except SyntaxError as exc:
        error(f"Invalid Python: {exc.msg}.", exc.lineno)
        return result

    digest, body = split_header(source)
    if digest is None:
        error("Missing generated-unit header.", 1)
    elif digest != body_digest(body):
        error("Digest mismatch: the unit was modified after generation.", 2)

    manifest = read_manifest(tree)
    _check_schema_version(manifest, error, result, path, strict=strict_schema_version)

    for declared, kind in manifest.declarations.items():
        if kind not in BINDING_KINDS:
            error(f"Declaration '{declared}' has unknown kind '{kind}'.")
            continue
        binding = manifest.bindings.get(declared)
        if binding is None:
            error(f"Declaration '{declared}' has no binding in the unit.")
        elif binding[0] != kind:
            error(
                f"Declaration '{declared}' is declared as '{kind}' "
                f"but bound as '{binding[0]}'.",
                binding[1],
            )

    for bound, (kind, line) in manifest.bindings.items():
        if bound not in manifest.declarations:
            error(f"Binding '{bound}' ({kind}) is missing from {DECLARATIONS_NAME}.", line)

    for group, members in manifest.groups.items():
        for member in members:
            if member not in manifest.declarations:
                error(f"Group '{group}' lists undeclared name '{member}'.")

    if manifest.exported is not None and manifest.exported != list(manifest.declarations):
        error(f"{ALL_NAME} does not list the declarations in order.")

    return result


def _check_schema_version(
    manifest: UnitManifest,
    error,
    result: ValidationResult,
    path: Path,
    *,
    strict: bool,
) -> None:
    if manifest.schema_version is None:
        message = (
            f"Missing {SCHEMA_VERSION_NAME}; assuming {UNIT_SCHEMA_VERSION}."
        )
        if strict:
            error(message)
        else:
            result.warnings.append(
                ValidationMessage(artifact=path.name, path=path, message=message)
            )
        return

    if manifest.schema_version != UNIT_SCHEMA_VERSION:
        error(
            "Schema version mismatch: "
            f"expected {UNIT_SCHEMA_VERSION}, got {manifest.schema_version}."
        )


__all__ = [
    "UnitManifest",
    "ValidationMessage",
    "ValidationResult",
    "read_manifest",
    "split_header",
    "validate_unit",
]
