from __future__ import annotations

import importlib
from typing import Any, Optional, Union

import pytest

import perfect_hash.generator as generator
from contract.errors import (
    BuilderFinalizedError,
    DuplicateKeyError,
    PerfectHashSearchError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from emit import emit
from fixtures.demo_types import Color, Level
from perfect_hash import (
    Map,
    MapBuilder,
    OrderedMap,
    OrderedMapBuilder,
    OrderedSet,
    OrderedSetBuilder,
    Set,
    SetBuilder,
)
from perfect_hash.hashing import Hashes, key_bytes
from rules.config import HashSettings


def _evaluate(text: str, imports: tuple[tuple[str, str], ...]) -> object:
    namespace: dict[str, object] = {}
    for module, name in imports:
        namespace[name] = getattr(importlib.import_module(module), name)
    return eval(text, namespace)  # noqa: S307


def test_int_map_lookups() -> None:
    builder: MapBuilder[int, int] = MapBuilder()
    for key in range(5):
        builder.entry(key, key + 10)

    table = builder.build()

    assert len(table) == 5
    assert [table[key] for key in range(5)] == [10, 11, 12, 13, 14]
    assert 5 not in table
    assert table.get(-1) is None


def test_ordered_set_iterates_in_insertion_order() -> None:
    builder: OrderedSetBuilder[int] = OrderedSetBuilder()
    for key in (10, 11, 12, 13, 14):
        builder.entry(key)

    table = builder.build()

    assert list(table) == [10, 11, 12, 13, 14]
    assert table.get_index(12) == 2
    assert table.index(4) == 14
    assert table.index(5) is None


def test_string_map_reports_absent_keys() -> None:
    builder: MapBuilder[str, str] = MapBuilder()
    for key, value in (("hello", "there"), ("what", "do"), ("you", "think?")):
        builder.entry(key, value)

    table = builder.build()

    assert len(table) == 3
    assert table["hello"] == "there"
    assert table["what"] == "do"
    assert table["you"] == "think?"
    assert table.get("nope") is None
    with pytest.raises(KeyError):
        table["nope"]


def test_no_false_positives_on_larger_tables() -> None:
    builder: SetBuilder[str] = SetBuilder()
    words = [f"word-{i}" for i in range(500)]
    for word in words:
        builder.entry(word)

    table = builder.build()

    assert all(word in table for word in words)
    assert not any(f"other-{i}" in table for i in range(500))
    assert set(table) == set(words)


def test_ordered_map_keeps_insertion_order() -> None:
    builder: OrderedMapBuilder[str, int] = OrderedMapBuilder()
    keys = ["zeta", "alpha", "mu", "beta", "omega", "gamma", "delta"]
    for i, key in enumerate(keys):
        builder.entry(key, i)

    table = builder.build()

    assert list(table) == keys
    assert list(table.values()) == list(range(len(keys)))
    assert table.get_index("mu") == 2
    assert table.index(0) == ("zeta", 0)
    assert table["omega"] == 4


def test_empty_builders() -> None:
    table = MapBuilder().build()

    assert len(table) == 0
    assert "anything" not in table
    assert list(OrderedSetBuilder().build()) == []


def test_duplicate_keys_are_rejected() -> None:
    builder: MapBuilder[int, str] = MapBuilder()
    builder.entry(1, "one")

    with pytest.raises(DuplicateKeyError):
        builder.entry(1, "uno")
    # Equal keys collide even across types, as in a dict.
    with pytest.raises(DuplicateKeyError):
        builder.entry(True, "true")


def test_builder_is_immutable_after_finalize() -> None:
    builder: SetBuilder[str] = SetBuilder()
    builder.entry("a")
    builder.finalize()

    assert builder.finalized
    with pytest.raises(BuilderFinalizedError):
        builder.entry("b")


def test_unsupported_key_types() -> None:
    builder: SetBuilder[float] = SetBuilder()

    with pytest.raises(UnsupportedTypeError):
        builder.entry(1.5)

    builder.entry(1)
    table = builder.build()
    assert 1 in table
    assert 1.5 not in table


def test_enum_and_tuple_keys() -> None:
    builder: MapBuilder[object, int] = MapBuilder()
    builder.entry(Color.RED, 1)
    builder.entry(("a", 1), 2)
    builder.entry(Level.HIGH, 3)

    table = builder.build()

    assert table[Color.RED] == 1
    assert table[("a", 1)] == 2
    assert table[2] == 3
    assert Color.BLUE not in table
    assert key_bytes(Level.HIGH) == key_bytes(2)


def test_tables_are_deterministic() -> None:
    def _build() -> MapBuilder[str, int]:
        builder: MapBuilder[str, int] = MapBuilder()
        for i in range(50):
            builder.entry(f"k{i}", i)
        return builder

    assert _build().finalize() == _build().finalize()


def test_search_failure_after_max_attempts(monkeypatch: pytest.MonkeyPatch) -> None:
    # Every key hashes to the same slot, so no displacement can separate them.
    monkeypatch.setattr(generator, "hash_key", lambda encoded, seed: Hashes(0, 0, 0))
    builder: SetBuilder[int] = SetBuilder()
    builder.entry(1)
    builder.entry(2)

    with pytest.raises(PerfectHashSearchError, match="after 3 attempts"):
        builder.finalize(HashSettings(max_attempts=3))


def test_map_declaration_emits_constructor_call() -> None:
    builder: MapBuilder[str, Color] = MapBuilder()
    builder.entry("r", Color.RED)
    builder.entry("g", Color.GREEN)

    fragment = emit(builder, Map[str, Color])
    table = _evaluate(fragment.text, fragment.imports)

    assert fragment.text.startswith("Map(")
    assert fragment.annotation == "Map[str, Color]"
    assert ("perfect_hash.runtime", "Map") in fragment.imports
    assert isinstance(table, Map)
    assert dict(table) == {"r": Color.RED, "g": Color.GREEN}
    assert builder.finalized


def test_ordered_declarations_round_trip() -> None:
    set_builder: OrderedSetBuilder[str] = OrderedSetBuilder()
    for key in ("c", "a", "b"):
        set_builder.entry(key)
    map_builder: OrderedMapBuilder[int, str] = OrderedMapBuilder()
    for key in (30, 10, 20):
        map_builder.entry(key, str(key))

    set_fragment = emit(set_builder, OrderedSet[str])
    map_fragment = emit(map_builder, OrderedMap[int, str])
    ordered_set = _evaluate(set_fragment.text, set_fragment.imports)
    ordered_map = _evaluate(map_fragment.text, map_fragment.imports)

    assert list(ordered_set) == ["c", "a", "b"]
    assert list(ordered_map.items()) == [(30, "30"), (10, "10"), (20, "20")]


def test_set_declaration_requires_matching_builder() -> None:
    with pytest.raises(TypeMismatchError, match="MapBuilder"):
        emit(MapBuilder(), Set[str])


def test_runtime_set_operators_return_frozensets() -> None:
    builder: SetBuilder[str] = SetBuilder()
    for key in ("a", "b"):
        builder.entry(key)
    table = builder.build()

    assert table & {"a", "z"} == frozenset({"a"})
    assert table == {"a", "b"}


def test_map_entry_accessors() -> None:
    builder: MapBuilder[str, int] = MapBuilder()
    builder.entry("one", 1)
    builder.entry("two", 2)

    table = builder.build()

    assert table.get_entry("two") == ("two", 2)
    assert table.get_entry("three") is None
    assert table.get_key("one") == "one"
    assert sorted(table.entries()) == [("one", 1), ("two", 2)]


def test_ordered_map_entries_follow_insertion_order() -> None:
    builder: OrderedMapBuilder[int, str] = OrderedMapBuilder()
    for key in (3, 1, 2):
        builder.entry(key, str(key))

    table = builder.build()

    assert list(table.entries()) == [(3, "3"), (1, "1"), (2, "2")]
    assert table.get_entry(1) == (1, "1")
    assert table.get_entry(4) is None


@pytest.mark.parametrize(
    ("builder_cls", "tp", "keys"),
    [
        (MapBuilder, Map[int, int], [0, 7, -3, 2**40]),
        (MapBuilder, Map[str, int], ["", "a", "ünï"]),
        (OrderedMapBuilder, OrderedMap[tuple[str, int], int], [("a", 1), ("b", 2)]),
        (SetBuilder, Set[Color], [Color.RED, Color.BLUE]),
        (SetBuilder, Set[Optional[int]], [None, 1, 2]),
        (OrderedSetBuilder, OrderedSet[Union[str, int]], ["x", 5]),
    ],
)
def test_emitted_keys_are_found_by_lookup(builder_cls: type, tp: Any, keys: list) -> None:
    builder = builder_cls()
    for position, key in enumerate(keys):
        if builder_cls in (MapBuilder, OrderedMapBuilder):
            builder.entry(key, position)
        else:
            builder.entry(key)

    fragment = emit(builder, tp)
    table = _evaluate(fragment.text, fragment.imports)

    assert len(table) == len(keys)
    for key in table:
        assert key in table
    if builder_cls in (MapBuilder, OrderedMapBuilder):
        assert all(table[key] == table.get_entry(key)[1] for key in table)


@pytest.mark.parametrize(
    ("builder_cls", "tp"),
    [
        (MapBuilder, Map[float, str]),
        (MapBuilder, Map[Union[str, float], str]),
        (SetBuilder, Set[Optional[float]]),
        (OrderedSetBuilder, OrderedSet[tuple[int, float]]),
    ],
)
def test_float_key_types_are_rejected(builder_cls: type, tp: Any) -> None:
    # An int key would be stored as 1.0, which its own table can't find.
    builder = builder_cls()
    if builder_cls is MapBuilder:
        builder.entry(1, "one")
    else:
        builder.entry(1)

    with pytest.raises(UnsupportedTypeError, match="float"):
        emit(builder, tp)
