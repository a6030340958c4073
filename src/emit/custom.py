"""Explicitly registered user types: structs and enums.

``@emittable`` is the derive step. It registers a dataclass, pydantic model,
``NamedTuple`` or ``Enum`` with the registry; nothing else becomes emittable
implicitly.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import TYPE_CHECKING, Annotated, Any, get_args, get_origin

from pydantic import BaseModel

from contract.artifacts import SCRIPT_RUN_NAME
from contract.errors import UnsupportedTypeError
from emit.descriptors import (
    EmitAs,
    field_hints,
    generic_bindings,
    substitute,
)
from emit.registry import default_registry

if TYPE_CHECKING:
    from emit.registry import Registry
    from emit.serializer import Emitter

_UNIMPORTABLE_MODULES = frozenset({"__main__", SCRIPT_RUN_NAME})


def import_name(emitter: Emitter, cls: type) -> str:
    """Record the import of ``cls`` and return how the unit refers to it.

    Raises:
        UnsupportedTypeError: If ``cls`` can't be imported by module path.
    """
    if cls.__module__ in _UNIMPORTABLE_MODULES or "<locals>" in cls.__qualname__:
        raise UnsupportedTypeError(
            cls.__qualname__, f"defined in {cls.__module__!r}, not importable by the unit"
        )
    top = cls.__qualname__.partition(".")[0]
    emitter.require(cls.__module__, top)
    return cls.__qualname__


def _is_namedtuple(cls: type) -> bool:
    return issubclass(cls, tuple) and hasattr(cls, "_fields")


def _is_pydantic(cls: type) -> bool:
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def _field_names(cls: type) -> tuple[str, ...]:
    if dataclasses.is_dataclass(cls):
        return tuple(f.name for f in dataclasses.fields(cls) if f.init)
    if _is_namedtuple(cls):
        return tuple(cls._fields)
    if _is_pydantic(cls):
        return tuple(cls.model_fields)
    msg = f"{cls.__qualname__} is not a dataclass, NamedTuple or pydantic model"
    raise TypeError(msg)


def _pinned(hint: Any) -> Any | None:
    if get_origin(hint) is Annotated:
        for meta in get_args(hint)[1:]:
            if isinstance(meta, EmitAs):
                return meta.target
    return None


def _declared_fields(cls: type) -> dict[str, tuple[Any, bool]]:
    """Field name -> (emission hint, pinned by an explicit ``EmitAs``)."""
    fields: dict[str, tuple[Any, bool]] = {}
    if _is_pydantic(cls):
        for name, info in cls.model_fields.items():
            pinned = next((m for m in info.metadata if isinstance(m, EmitAs)), None)
            if pinned is not None:
                fields[name] = (pinned.target, True)
            else:
                fields[name] = (info.annotation, False)
        return fields
    hints = field_hints(cls)
    for name in _field_names(cls):
        hint = hints[name]
        target = _pinned(hint)
        fields[name] = (hint, False) if target is None else (target, True)
    return fields


class StructCapability:
    """Constructor-call fragments for records, in declared field order."""

    def __init__(
        self, cls: type, *, out_type: type | None = None, positional: bool = False
    ) -> None:
        self.cls = cls
        self.out_type = out_type
        self.positional = positional
        self.fields = _field_names(out_type or cls)
        self._hints: dict[str, Any] | None = None

    def _emitted_hints(self) -> dict[str, Any]:
        # Resolved lazily: annotations may reference names defined later.
        if self._hints is None:
            source = _declared_fields(self.cls)
            target = _declared_fields(self.out_type) if self.out_type else {}
            hints: dict[str, Any] = {}
            for name in self.fields:
                hint, pinned = source[name]
                if self.out_type is not None and not pinned:
                    hint = target[name][0]
                hints[name] = hint
            self._hints = hints
        return self._hints

    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return type(value) is self.cls

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        bindings = generic_bindings(tp)
        hints = self._emitted_hints()
        name = import_name(emitter, self.out_type or self.cls)
        args = []
        for field in self.fields:
            text = emitter.emit(getattr(value, field), substitute(hints[field], bindings))
            args.append(text if self.positional else f"{field}={text}")
        return f"{name}({', '.join(args)})"

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        if self.out_type is not None:
            return import_name(emitter, self.out_type)
        name = import_name(emitter, self.cls)
        args = get_args(tp)
        if args:
            return f"{name}[{', '.join(emitter.annotation(arg) for arg in args)}]"
        return name


class EnumCapability:
    """Emits the member's tag; the member's payload lives in the enum itself."""

    def __init__(self, cls: type[enum.Enum]) -> None:
        self.cls = cls

    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return type(value) is self.cls

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        return f"{import_name(emitter, self.cls)}.{value.name}"

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        return import_name(emitter, self.cls)


def _capability_for(cls: type, out_type: type | None) -> Any:
    if issubclass(cls, enum.Enum):
        if out_type is not None:
            msg = f"Enum {cls.__qualname__} can't declare an out_type"
            raise TypeError(msg)
        return EnumCapability(cls)
    names = _field_names(cls)
    if out_type is not None:
        out_names = _field_names(out_type)
        if set(out_names) != set(names):
            msg = (
                f"out_type {out_type.__qualname__} must declare exactly the fields "
                f"of {cls.__qualname__}: {', '.join(names)}"
            )
            raise TypeError(msg)
        return StructCapability(
            cls, out_type=out_type, positional=_is_namedtuple(out_type)
        )
    return StructCapability(cls, positional=_is_namedtuple(cls))


def emittable(
    cls: type | None = None,
    /,
    *,
    out_type: type | None = None,
    registry: Registry | None = None,
) -> Any:
    """Register a class as emittable.

    Usable bare (``@emittable``) or with options
    (``@emittable(out_type=Frozen)``). ``out_type`` substitutes the whole type
    in the generated unit: fields are emitted with ``out_type``'s annotations.
    """

    def wrap(target: type) -> type:
        capability = _capability_for(target, out_type)
        (registry if registry is not None else default_registry()).register(
            target, capability
        )
        return target

    if cls is None:
        return wrap
    return wrap(cls)


__all__ = ["EnumCapability", "StructCapability", "emittable", "import_name"]
