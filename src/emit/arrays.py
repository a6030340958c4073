"""Dimension handling for array-shaped exports.

A fixed level is a ``tuple`` annotated ``Annotated[tuple[Inner, ...], N]``;
a dynamic level is a ``list``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from contract.errors import DimensionMismatchError
from emit.builtins import is_sequence, list_literal, tuple_literal

if TYPE_CHECKING:
    from emit.serializer import Emitter


def check_dimension(value: Any, dimension: int, *, fixed: bool = True) -> None:
    """Check that ``value`` nests at least ``dimension`` sequence levels.

    Fixed levels must also be rectangular, since their lengths are part of
    the emitted type.
    """
    if dimension < 1:
        raise DimensionMismatchError(
            dimension, "array exports need a dimension of at least 1"
        )
    _check_level(value, dimension, 0, fixed=fixed)


def _check_level(value: Any, dimension: int, level: int, *, fixed: bool) -> None:
    if not is_sequence(value):
        raise DimensionMismatchError(
            dimension,
            f"value is too shallow: level {level} holds "
            f"'{type(value).__qualname__}', not a sequence",
        )
    if level == dimension - 1:
        return
    if not value:
        raise DimensionMismatchError(
            dimension,
            f"value is too shallow: level {level} is empty",
        )
    for item in value:
        _check_level(item, dimension, level + 1, fixed=fixed)
    if fixed and len({len(item) for item in value}) > 1:
        raise DimensionMismatchError(
            dimension, f"fixed level {level + 1} is ragged"
        )


def array_text(
    emitter: Emitter, value: Any, element_type: Any, dimension: int, *, fixed: bool
) -> str:
    if dimension == 0:
        return emitter.emit(value, element_type)
    items = [
        array_text(emitter, item, element_type, dimension - 1, fixed=fixed)
        for item in value
    ]
    return tuple_literal(items) if fixed else list_literal(items)


def array_annotation(
    emitter: Emitter, value: Any, element_type: Any, dimension: int, *, fixed: bool
) -> str:
    if dimension == 0:
        return emitter.annotation(element_type)
    first = value[0] if value else None
    inner = array_annotation(emitter, first, element_type, dimension - 1, fixed=fixed)
    if not fixed:
        return f"list[{inner}]"
    emitter.require("typing", "Annotated")
    return f"Annotated[tuple[{inner}, ...], {len(value)}]"


def array_shape(value: Any, dimension: int) -> tuple[int, ...]:
    """Lengths of the fixed levels, outermost first."""
    shape: list[int] = []
    for _ in range(dimension):
        shape.append(len(value))
        value = value[0] if value else ()
    return tuple(shape)


__all__ = ["array_annotation", "array_shape", "array_text", "check_dimension"]
