"""Type descriptor helpers: registry keys, generics and substitutions."""

from __future__ import annotations

import types
import typing
from dataclasses import dataclass
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin

NoneType = type(None)


@dataclass(frozen=True)
class EmitAs:
    """Per-field output-type substitution.

    ``Annotated[list[str], EmitAs(tuple[str, ...])]`` emits the field's value
    as ``tuple[str, ...]`` in the generated unit.
    """

    target: Any


class UnionKey:
    """Registry key shared by ``Union[...]``, ``Optional[...]`` and ``X | Y``."""


def strip_annotated(tp: Any) -> Any:
    """Drop ``Annotated`` metadata, honouring an ``EmitAs`` substitution."""
    while get_origin(tp) is Annotated:
        base, *metadata = get_args(tp)
        substitute = next((m for m in metadata if isinstance(m, EmitAs)), None)
        tp = substitute.target if substitute is not None else base
    return tp


def is_union(tp: Any) -> bool:
    origin = get_origin(tp)
    return origin is Union or origin is types.UnionType


def type_key(tp: Any) -> Any:
    """Return the registry key of a declared type."""
    if tp is None:
        return NoneType
    if is_union(tp):
        return UnionKey
    origin = get_origin(tp)
    if origin is not None:
        return origin
    return tp


def type_name(tp: Any) -> str:
    """Human-readable type name for diagnostics."""
    if tp is None or tp is NoneType:
        return "None"
    if isinstance(tp, type) and not get_args(tp):
        return tp.__qualname__
    return repr(tp).replace("typing.", "")


def substitute(hint: Any, mapping: dict[Any, Any]) -> Any:
    """Replace type variables in ``hint`` with their bound arguments."""
    if isinstance(hint, TypeVar):
        return mapping.get(hint, hint)
    params = getattr(hint, "__parameters__", ())
    if params and get_origin(hint) is not None:
        return hint[tuple(mapping.get(p, p) for p in params)]
    return hint


def generic_bindings(tp: Any) -> dict[Any, Any]:
    """Map the type parameters of a generic class onto ``tp``'s arguments."""
    origin = get_origin(tp)
    if origin is None:
        return {}
    params = getattr(origin, "__parameters__", ())
    return dict(zip(params, get_args(tp)))


def field_hints(cls: type) -> dict[str, Any]:
    return typing.get_type_hints(cls, include_extras=True)


__all__ = [
    "EmitAs",
    "NoneType",
    "UnionKey",
    "field_hints",
    "generic_bindings",
    "is_union",
    "strip_annotated",
    "substitute",
    "type_key",
    "type_name",
]
