"""Emit capabilities for the perfect-hash collection types.

A ``Map[K, V]`` declaration takes a ``MapBuilder`` value and emits a
``Map(...)`` constructor call carrying the finalized tables; likewise for the
set and ordered variants.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, get_args

from contract.errors import UnsupportedTypeError
from emit.builtins import tuple_literal
from emit.descriptors import strip_annotated, type_name
from perfect_hash.builders import (
    MapBuilder,
    OrderedMapBuilder,
    OrderedSetBuilder,
    SetBuilder,
)
from perfect_hash.runtime import Map, OrderedMap, OrderedSet, Set

if TYPE_CHECKING:
    from emit.registry import Registry
    from emit.serializer import Emitter

RUNTIME_MODULE = "perfect_hash.runtime"


def _holds_float(tp: Any) -> bool:
    """Whether emitting through ``tp`` can turn an int key into a float."""
    tp = strip_annotated(tp)
    if tp is float:
        return True
    return any(_holds_float(arg) for arg in get_args(tp) if arg is not Ellipsis)


class CollectionCapability:
    def __init__(self, builder_cls: type, runtime_cls: type, *, with_values: bool) -> None:
        self.builder_cls = builder_cls
        self.runtime_cls = runtime_cls
        self.with_values = with_values

    def _args(self, tp: Any) -> tuple[Any, ...]:
        args = get_args(tp)
        if len(args) != (2 if self.with_values else 1):
            what = "key and value types" if self.with_values else "the key type"
            raise UnsupportedTypeError(type_name(tp), f"{what} must be declared")
        if _holds_float(args[0]):
            # The tables hash the inserted key; a float in the unit would miss them.
            raise UnsupportedTypeError(
                type_name(tp), "float can't appear in a perfect-hash key type"
            )
        return args

    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return type(value) is self.builder_cls

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        args = self._args(tp)
        state = value.finalize(emitter.hash_settings)
        name = emitter.require(RUNTIME_MODULE, self.runtime_cls.__name__)

        keys = [emitter.emit(key, args[0]) for key in value.keys_in_order()]
        if self.with_values:
            values = [emitter.emit(item, args[1]) for item in value.values_in_order()]
            items = [f"({key}, {item})" for key, item in zip(keys, values)]
        else:
            items = keys

        parts = [
            str(state.seed),
            tuple_literal([f"({d1}, {d2})" for d1, d2 in state.disps]),
        ]
        if value.ordered:
            parts.append(tuple_literal([str(slot) for slot in state.slots]))
        parts.append(tuple_literal(items))
        return f"{name}({', '.join(parts)})"

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        args = self._args(tp)
        name = emitter.require(RUNTIME_MODULE, self.runtime_cls.__name__)
        return f"{name}[{', '.join(emitter.annotation(arg) for arg in args)}]"


def install_collections(registry: Registry) -> None:
    registry.register(Map, CollectionCapability(MapBuilder, Map, with_values=True))
    registry.register(
        OrderedMap,
        CollectionCapability(OrderedMapBuilder, OrderedMap, with_values=True),
    )
    registry.register(Set, CollectionCapability(SetBuilder, Set, with_values=False))
    registry.register(
        OrderedSet,
        CollectionCapability(OrderedSetBuilder, OrderedSet, with_values=False),
    )


__all__ = ["CollectionCapability", "install_collections"]
