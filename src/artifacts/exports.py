"""The ``write_*`` entry points called by generation scripts.

Every entry takes the run's ``Artifact`` explicitly, emits the value against
its declared type, and appends the resulting declaration.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, Any

from artifacts.models.declaration import Declaration, StructField
from contract.artifacts import check_identifier
from contract.errors import InvalidNameError, InvalidTypeExpressionError
from emit.serializer import emit_array, emit_value

if TYPE_CHECKING:
    from collections.abc import Iterable

    from artifacts.aggregator import Artifact
    from contract.artifacts import BindingKind
    from emit.serializer import Fragment


def _declaration(
    name: str,
    kind: BindingKind,
    fragment: Fragment,
    *,
    dimension: int = 0,
    group: str | None = None,
) -> Declaration:
    return Declaration(
        name=name,
        kind=kind,
        type_text=fragment.annotation,
        fragment=fragment.text,
        dimension=dimension,
        shape=fragment.shape,
        imports=fragment.imports,
        group=group,
    )


def _write(artifact: Artifact, name: str, kind: BindingKind, tp: Any, value: Any) -> Declaration:
    fragment = emit_value(artifact.emitter(), value, tp)
    return artifact.register(_declaration(name, kind, fragment))


def _write_array(
    artifact: Artifact,
    name: str,
    kind: BindingKind,
    element_type: Any,
    value: Any,
    dimension: int,
    *,
    fixed: bool = True,
) -> Declaration:
    fragment = emit_array(artifact.emitter(), value, element_type, dimension, fixed=fixed)
    return artifact.register(
        _declaration(name, kind, fragment, dimension=dimension if fixed else 0)
    )


def write_const(artifact: Artifact, name: str, tp: Any, value: Any) -> Declaration:
    """Export ``value`` as a ``Final`` constant."""
    return _write(artifact, name, "const", tp, value)


def write_static(artifact: Artifact, name: str, tp: Any, value: Any) -> Declaration:
    """Export ``value`` as a module-level binding."""
    return _write(artifact, name, "static", tp, value)


def write_fn(artifact: Artifact, name: str, tp: Any, value: Any) -> Declaration:
    """Export ``value`` behind a zero-argument accessor.

    Each call of the accessor builds a fresh value.
    """
    return _write(artifact, name, "fn", tp, value)


def write_const_array(
    artifact: Artifact, name: str, element_type: Any, value: Any, dimension: int = 1
) -> Declaration:
    """Export ``value`` as a constant with ``dimension`` fixed-size levels.

    Raises:
        DimensionMismatchError: If ``value`` nests fewer levels than
            ``dimension`` or a fixed level is ragged.
    """
    return _write_array(artifact, name, "const", element_type, value, dimension)


def write_static_array(
    artifact: Artifact, name: str, element_type: Any, value: Any, dimension: int = 1
) -> Declaration:
    return _write_array(artifact, name, "static", element_type, value, dimension)


def write_array_fn(
    artifact: Artifact, name: str, element_type: Any, value: Any, dimension: int = 1
) -> Declaration:
    return _write_array(artifact, name, "fn", element_type, value, dimension)


def write_vector_fn(
    artifact: Artifact, name: str, element_type: Any, value: Any, dimension: int = 1
) -> Declaration:
    """Like ``write_array_fn``, but the outer levels are growable lists."""
    return _write_array(
        artifact, name, "fn", element_type, value, dimension, fixed=False
    )


def _write_group(
    artifact: Artifact,
    group: str,
    kind: BindingKind,
    tp: Any,
    items: Iterable[tuple[str, Any]],
) -> tuple[Declaration, ...]:
    declarations = [
        _declaration(name, kind, emit_value(artifact.emitter(), value, tp), group=group)
        for name, value in items
    ]
    return artifact.register_group(group, declarations)


def write_consts(
    artifact: Artifact, group: str, tp: Any, items: Iterable[tuple[str, Any]]
) -> tuple[Declaration, ...]:
    """Export several same-typed constants under the alias ``group``."""
    return _write_group(artifact, group, "const", tp, items)


def write_statics(
    artifact: Artifact, group: str, tp: Any, items: Iterable[tuple[str, Any]]
) -> tuple[Declaration, ...]:
    return _write_group(artifact, group, "static", tp, items)


def write_fns(
    artifact: Artifact, group: str, tp: Any, items: Iterable[tuple[str, Any]]
) -> tuple[Declaration, ...]:
    return _write_group(artifact, group, "fn", tp, items)


def _check_type_expression(expression: str) -> str:
    try:
        ast.parse(expression, mode="eval")
    except SyntaxError:
        raise InvalidTypeExpressionError(expression) from None
    return expression.strip()


def write_struct(
    artifact: Artifact,
    name: str,
    fields: Iterable[tuple[str, str]],
    *,
    imports: Iterable[tuple[str, str]] = (),
) -> Declaration:
    """Declare a frozen dataclass in the unit.

    Field types are Python expressions given as text; names they reference
    that are not builtins or unit declarations must be listed in
    ``imports`` as ``(module, name)`` pairs.

    Raises:
        InvalidTypeExpressionError: If a field type does not parse.
        InvalidNameError: If a field name can't be bound.
    """
    struct_fields = []
    seen: set[str] = set()
    for field_name, expression in fields:
        reason = check_identifier(field_name)
        if reason is None and field_name in seen:
            reason = "duplicate field"
        if reason is not None:
            raise InvalidNameError(f"{name}.{field_name}", reason)
        seen.add(field_name)
        struct_fields.append(
            StructField(name=field_name, type_text=_check_type_expression(expression))
        )
    declaration = Declaration(
        name=name,
        kind="type",
        type_text=name,
        imports=tuple(sorted(set(imports))),
        fields=tuple(struct_fields),
    )
    return artifact.register(declaration)


__all__ = [
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
