"""Value-to-source serializer.

``emit(value, declared_type, dimension)`` returns a fragment of Python source
that, once compiled, reconstructs a value equal to ``value``. Emission is pure
and deterministic: the same value and type always produce the same text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from contract.errors import TypeMismatchError
from emit.arrays import array_annotation, array_shape, array_text, check_dimension
from emit.descriptors import strip_annotated, type_name
from emit.registry import default_registry

if TYPE_CHECKING:
    from emit.registry import Registry
    from rules.config import HashSettings


@dataclass(frozen=True)
class Fragment:
    """An emitted value: source text, its annotation and the imports both need."""

    text: str
    annotation: str
    imports: tuple[tuple[str, str], ...] = ()
    shape: tuple[int, ...] = ()


class Emitter:
    """Walks a value against its declared type, collecting imports on the way."""

    def __init__(
        self,
        registry: Registry | None = None,
        hash_settings: HashSettings | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.hash_settings = hash_settings
        self.imports: set[tuple[str, str]] = set()

    def require(self, module: str, name: str) -> str:
        """Record that the unit must import ``name`` from ``module``."""
        self.imports.add((module, name))
        return name

    def emit(self, value: Any, tp: Any) -> str:
        tp = strip_annotated(tp)
        capability = self.registry.lookup(tp)
        if not capability.matches(self, value, tp):
            raise TypeMismatchError(type_name(tp), value)
        return capability.emit(self, value, tp)

    def annotation(self, tp: Any) -> str:
        tp = strip_annotated(tp)
        return self.registry.lookup(tp).annotation(self, tp)

    def fragment(self, text: str, annotation: str, shape: tuple[int, ...] = ()) -> Fragment:
        return Fragment(
            text=text,
            annotation=annotation,
            imports=tuple(sorted(self.imports)),
            shape=shape,
        )


def emit_value(emitter: Emitter, value: Any, declared_type: Any) -> Fragment:
    text = emitter.emit(value, declared_type)
    return emitter.fragment(text, emitter.annotation(declared_type))


def emit_array(
    emitter: Emitter,
    value: Any,
    element_type: Any,
    dimension: int = 1,
    *,
    fixed: bool = True,
) -> Fragment:
    """Emit ``dimension`` outer levels as tuples (``fixed``) or lists.

    Levels below ``dimension`` follow ``element_type`` as declared.
    """
    check_dimension(value, dimension, fixed=fixed)
    text = array_text(emitter, value, element_type, dimension, fixed=fixed)
    annotation = array_annotation(emitter, value, element_type, dimension, fixed=fixed)
    shape = array_shape(value, dimension) if fixed else ()
    return emitter.fragment(text, annotation, shape)


def emit(
    value: Any,
    declared_type: Any,
    dimension: int = 0,
    *,
    registry: Registry | None = None,
    hash_settings: HashSettings | None = None,
) -> Fragment:
    """Emit ``value`` as ``declared_type``.

    A positive ``dimension`` emits that many outer levels as fixed-size
    arrays of ``declared_type`` elements.

    Raises:
        UnsupportedTypeError: If a type reached has no registered capability.
        TypeMismatchError: If a value does not fit its declared type.
        DimensionMismatchError: If ``dimension`` exceeds the value's depth.
    """
    emitter = Emitter(registry, hash_settings)
    if dimension:
        return emit_array(emitter, value, declared_type, dimension)
    return emit_value(emitter, value, declared_type)


__all__ = ["Emitter", "Fragment", "emit", "emit_array", "emit_value"]
