"""Built-in emit capabilities for Python's literal shapes."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, get_args, get_origin

from contract.errors import TypeMismatchError, UnsupportedTypeError
from emit.descriptors import NoneType, UnionKey, strip_annotated, type_name

if TYPE_CHECKING:
    from emit.registry import Registry
    from emit.serializer import Emitter


def tuple_literal(items: Sequence[str]) -> str:
    if len(items) == 1:
        return f"({items[0]},)"
    return f"({', '.join(items)})"


def list_literal(items: Sequence[str]) -> str:
    return f"[{', '.join(items)}]"


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _float_literal(value: float) -> str:
    value = float(value)
    if math.isfinite(value):
        return float.__repr__(value)
    if math.isnan(value):
        return 'float("nan")'
    return 'float("inf")' if value > 0 else 'float("-inf")'


def _bool_literal(value: bool) -> str:
    return "True" if value else "False"


def _require_args(tp: Any, count: int | None = None) -> tuple[Any, ...]:
    args = get_args(tp)
    if not args or (count is not None and len(args) != count):
        raise UnsupportedTypeError(type_name(tp), "element types must be declared")
    return args


class ScalarCapability:
    """Literals whose fragment depends on the value alone."""

    def __init__(
        self,
        name: str,
        accepts: tuple[type, ...],
        render: Callable[[Any], str],
        rejects: tuple[type, ...] = (),
    ) -> None:
        self.name = name
        self.accepts = accepts
        self.render = render
        self.rejects = rejects

    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return isinstance(value, self.accepts) and not isinstance(value, self.rejects)

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        return self.render(value)

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        return self.name


def _same_container(tp: Any, value: Any) -> bool:
    origin = get_origin(tp) or tp
    if origin in (list, tuple):
        return isinstance(value, origin)
    return True


class FloatCapability(ScalarCapability):
    """Floats, and ints small enough to convert to one."""

    def __init__(self) -> None:
        super().__init__("float", (float, int), _float_literal, rejects=(bool,))

    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        if not super().matches(emitter, value, tp):
            return False
        try:
            float(value)
        except OverflowError:
            return False
        return True


class NoneCapability:
    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return value is None

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        return "None"

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        return "None"


class UnionCapability:
    """Emits the first declared arm whose capability accepts the value.

    Arm selection looks at the outer shape only; the chosen arm then emits
    the value in full. A list or tuple value prefers an arm of its own
    container type before any arm that would convert it.
    """

    def _select(self, emitter: Emitter, value: Any, tp: Any) -> Any | None:
        arms = [strip_annotated(arm) for arm in get_args(tp)]
        for exact in (True, False):
            for arm in arms:
                if exact and not _same_container(arm, value):
                    continue
                if emitter.registry.lookup(arm).matches(emitter, value, arm):
                    return arm
        return None

    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return self._select(emitter, value, tp) is not None

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        arm = self._select(emitter, value, tp)
        if arm is None:
            raise TypeMismatchError(type_name(tp), value)
        return emitter.emit(value, arm)

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        arms = [arm for arm in get_args(tp) if arm is not NoneType]
        if len(arms) == 1 and len(get_args(tp)) == 2:
            emitter.require("typing", "Optional")
            return f"Optional[{emitter.annotation(arms[0])}]"
        emitter.require("typing", "Union")
        inner = ", ".join(emitter.annotation(arm) for arm in get_args(tp))
        return f"Union[{inner}]"


class TupleCapability:
    """``tuple[A, B]`` (fixed, heterogeneous) and ``tuple[T, ...]``."""

    @staticmethod
    def _homogeneous(tp: Any) -> bool:
        args = get_args(tp)
        return len(args) == 2 and args[1] is Ellipsis

    @staticmethod
    def _check_declared(tp: Any) -> None:
        if tp is tuple:
            raise UnsupportedTypeError("tuple", "element types must be declared")

    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        self._check_declared(tp)
        if not is_sequence(value):
            return False
        if self._homogeneous(tp):
            return True
        return len(value) == len(get_args(tp))

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        args = get_args(tp)
        if self._homogeneous(tp):
            items = [emitter.emit(item, args[0]) for item in value]
        else:
            items = [emitter.emit(item, arg) for item, arg in zip(value, args)]
        return tuple_literal(items)

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        self._check_declared(tp)
        args = get_args(tp)
        if self._homogeneous(tp):
            return f"tuple[{emitter.annotation(args[0])}, ...]"
        if not args:
            return "tuple[()]"
        return f"tuple[{', '.join(emitter.annotation(arg) for arg in args)}]"


class ListCapability:
    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return is_sequence(value)

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        (item_type,) = _require_args(tp, 1)
        return list_literal([emitter.emit(item, item_type) for item in value])

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        (item_type,) = _require_args(tp, 1)
        return f"list[{emitter.annotation(item_type)}]"


class DictCapability:
    """Plain dict literals, in the mapping's own iteration order."""

    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return isinstance(value, Mapping)

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        key_type, value_type = _require_args(tp, 2)
        items = [
            f"{emitter.emit(key, key_type)}: {emitter.emit(item, value_type)}"
            for key, item in value.items()
        ]
        return "{" + ", ".join(items) + "}"

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        key_type, value_type = _require_args(tp, 2)
        return f"dict[{emitter.annotation(key_type)}, {emitter.annotation(value_type)}]"


class SetLiteralCapability:
    """``set[T]``/``frozenset[T]``; elements are sorted by fragment text."""

    def __init__(self, name: str) -> None:
        self.name = name

    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return isinstance(value, (set, frozenset))

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        (item_type,) = _require_args(tp, 1)
        items = sorted(emitter.emit(item, item_type) for item in value)
        if not items:
            return f"{self.name}()"
        body = "{" + ", ".join(items) + "}"
        return body if self.name == "set" else f"{self.name}({body})"

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        (item_type,) = _require_args(tp, 1)
        return f"{self.name}[{emitter.annotation(item_type)}]"


def install_builtins(registry: Registry) -> None:
    registry.register(
        bool, ScalarCapability("bool", (bool,), _bool_literal)
    )
    registry.register(
        int, ScalarCapability("int", (int,), int.__repr__, rejects=(bool,))
    )
    registry.register(float, FloatCapability())
    registry.register(str, ScalarCapability("str", (str,), str.__repr__))
    registry.register(
        bytes,
        ScalarCapability("bytes", (bytes, bytearray), lambda v: bytes.__repr__(bytes(v))),
    )
    registry.register(NoneType, NoneCapability())
    registry.register(UnionKey, UnionCapability())
    registry.register(tuple, TupleCapability())
    registry.register(list, ListCapability())
    registry.register(dict, DictCapability())
    registry.register(set, SetLiteralCapability("set"))
    registry.register(frozenset, SetLiteralCapability("frozenset"))


__all__ = [
    "install_builtins",
    "is_sequence",
    "list_literal",
    "tuple_literal",
]
