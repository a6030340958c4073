from __future__ import annotations

import importlib
from dataclasses import dataclass
from fractions import Fraction
from typing import Any

import pytest

from contract.errors import TypeMismatchError, UnsupportedTypeError
from emit import Emitter, Registry, default_registry, emit, emittable
from emit.serializer import Fragment
from fixtures.demo_types import (
    Color,
    FrozenTags,
    Labelled,
    Pair,
    Point,
    Setting,
    Span,
    SubPoint,
    Tags,
    Unregistered,
)

DEMO = "fixtures.demo_types"


def _evaluate(fragment: Fragment) -> object:
    namespace: dict[str, object] = {}
    for module, name in fragment.imports:
        namespace[name] = getattr(importlib.import_module(module), name)
    return eval(fragment.text, namespace)  # noqa: S307


def test_dataclass_uses_keyword_fields_and_records_import() -> None:
    fragment = emit(Point(1, -2), Point)

    assert fragment.text == "Point(x=1, y=-2)"
    assert fragment.annotation == "Point"
    assert fragment.imports == ((DEMO, "Point"),)
    assert _evaluate(fragment) == Point(1, -2)


def test_enum_emits_member_tag() -> None:
    fragment = emit(Color.GREEN, Color)

    assert fragment.text == "Color.GREEN"
    assert _evaluate(fragment) is Color.GREEN


def test_namedtuple_is_positional() -> None:
    fragment = emit(Span(3, 9), Span)

    assert fragment.text == "Span(3, 9)"
    assert _evaluate(fragment) == Span(3, 9)


def test_pydantic_model() -> None:
    fragment = emit(Setting(key="retries", value=None), Setting)

    assert fragment.text == "Setting(key='retries', value=None)"
    assert _evaluate(fragment) == Setting(key="retries")


def test_generic_dataclass_substitutes_type_parameters() -> None:
    fragment = emit(Pair("a", "b"), Pair[str])

    assert fragment.text == "Pair(left='a', right='b')"
    assert fragment.annotation == "Pair[str]"
    with pytest.raises(TypeMismatchError):
        emit(Pair(1, 2), Pair[str])


def test_whole_type_substitution() -> None:
    fragment = emit(Tags("colors", ["red", "blue"]), Tags)

    assert fragment.text == "FrozenTags(name='colors', tags=('red', 'blue'))"
    assert fragment.annotation == "FrozenTags"
    assert fragment.imports == ((DEMO, "FrozenTags"),)
    assert _evaluate(fragment) == FrozenTags("colors", ("red", "blue"))


def test_per_field_substitution() -> None:
    fragment = emit(Labelled("x", ["ex", "cross"]), Labelled)

    assert fragment.text == "Labelled(label='x', aliases=('ex', 'cross'))"
    assert _evaluate(fragment).aliases == ("ex", "cross")


def test_nested_user_types_in_containers() -> None:
    value = {Color.RED: [Point(0, 0)], Color.BLUE: []}
    fragment = emit(value, dict[Color, list[Point]])

    assert fragment.imports == ((DEMO, "Color"), (DEMO, "Point"))
    assert _evaluate(fragment) == value


def test_unregistered_class_is_rejected() -> None:
    with pytest.raises(UnsupportedTypeError, match="Unregistered"):
        emit(Unregistered(1), Unregistered)


def test_registration_is_not_inherited() -> None:
    with pytest.raises(UnsupportedTypeError):
        emit(SubPoint(1, 2), SubPoint)
    with pytest.raises(TypeMismatchError):
        emit(SubPoint(1, 2), Point)


def test_emittable_rejects_plain_classes() -> None:
    class Plain:
        pass

    with pytest.raises(TypeError, match="not a dataclass"):
        emittable(Plain, registry=Registry())


def test_out_type_must_declare_the_same_fields() -> None:
    @dataclass
    class Narrow:
        name: str

    with pytest.raises(TypeError, match="must declare exactly the fields"):
        emittable(Tags, out_type=Narrow, registry=Registry())


def test_locally_defined_types_cannot_be_imported_by_the_unit() -> None:
    registry = default_registry().copy()

    @emittable(registry=registry)
    @dataclass
    class Local:
        x: int

    with pytest.raises(UnsupportedTypeError, match="not importable"):
        emit(Local(1), Local, registry=registry)


def test_duplicate_registration_is_an_error() -> None:
    registry = Registry()
    emittable(Point, registry=registry)

    with pytest.raises(ValueError, match="already registered"):
        emittable(Point, registry=registry)


class _FractionCapability:
    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        return isinstance(value, Fraction)

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        name = emitter.require("fractions", "Fraction")
        return f"{name}({value.numerator}, {value.denominator})"

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        return emitter.require("fractions", "Fraction")


def test_hand_written_capability() -> None:
    registry = default_registry().copy()
    registry.register(Fraction, _FractionCapability())

    fragment = emit([Fraction(1, 3)], list[Fraction], registry=registry)

    assert fragment.text == "[Fraction(1, 3)]"
    assert fragment.annotation == "list[Fraction]"
    assert _evaluate(fragment) == [Fraction(1, 3)]
    assert Fraction not in default_registry()
