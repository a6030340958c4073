from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import pytest

from artifacts import (
    Artifact,
    write_array_fn,
    write_const,
    write_const_array,
    write_consts,
    write_fn,
    write_static,
    write_static_array,
    write_struct,
    write_vector_fn,
)
from artifacts.render import render_unit
from artifacts.write import flush_artifact, open_artifact
from contract.artifacts import DIGEST_PREFIX, UNIT_HEADER, body_digest
from contract.errors import (
    ArtifactClosedError,
    DimensionMismatchError,
    InvalidNameError,
    InvalidTypeExpressionError,
    NameCollisionError,
    TypeMismatchError,
)
from fixtures.demo_types import Point
from symbols import use_symbols


def test_declarations_keep_write_order() -> None:
    artifact = Artifact()
    write_const(artifact, "B", int, 2)
    write_static(artifact, "A", str, "a")
    write_fn(artifact, "C", list[int], [1])

    assert [d.name for d in artifact] == ["B", "A", "C"]
    assert [d.kind for d in artifact] == ["const", "static", "fn"]
    assert "A" in artifact
    assert artifact.get("B").fragment == "2"


def test_name_collision_in_one_run() -> None:
    artifact = Artifact()
    write_const(artifact, "LIMIT", int, 1)

    with pytest.raises(NameCollisionError, match="LIMIT"):
        write_static(artifact, "LIMIT", int, 2)
    assert len(artifact) == 1
    assert artifact.get("LIMIT").kind == "const"


@pytest.mark.parametrize("name", ["class", "1st", "with-dash", "__dunder__", ""])
def test_invalid_names(name: str) -> None:
    with pytest.raises(InvalidNameError):
        write_const(Artifact(), name, int, 1)


def test_failed_emission_declares_nothing() -> None:
    artifact = Artifact()

    with pytest.raises(TypeMismatchError):
        write_const(artifact, "BAD", int, "one")
    assert len(artifact) == 0


def test_dimension_mismatch_on_shallow_value() -> None:
    with pytest.raises(DimensionMismatchError):
        write_static_array(Artifact(), "FLAT", int, [1, 2, 3], 2)


def test_array_declarations_record_dimension_and_shape() -> None:
    artifact = Artifact()

    fixed = write_const_array(artifact, "GRID", int, [[1, 2], [3, 4], [5, 6]], 2)
    vector = write_vector_fn(artifact, "ROWS", int, [[1], [2, 3]], 2)

    assert fixed.dimension == 2
    assert fixed.shape == (3, 2)
    assert vector.dimension == 0
    assert vector.type_text == "list[list[int]]"


def test_group_is_registered_atomically() -> None:
    artifact = Artifact()
    write_const(artifact, "TAKEN", int, 0)

    with pytest.raises(NameCollisionError, match="TAKEN"):
        write_consts(artifact, "LIMITS", int, [("FREE", 1), ("TAKEN", 2)])
    assert "FREE" not in artifact
    assert "LIMITS" not in artifact

    with pytest.raises(NameCollisionError):
        write_consts(artifact, "PAIR", int, [("X", 1), ("X", 2)])
    with pytest.raises(NameCollisionError):
        write_consts(artifact, "TAKEN", int, [("Y", 1)])


def test_write_after_flush_is_rejected(tmp_path: Path) -> None:
    artifact = Artifact()
    write_const(artifact, "A", int, 1)
    flush_artifact(artifact, tmp_path / "unit.py")

    assert artifact.closed
    with pytest.raises(ArtifactClosedError):
        write_const(artifact, "B", int, 2)


def test_rendered_unit_layout() -> None:
    artifact = Artifact()
    write_const(artifact, "CONST_A", Optional[tuple[int, int]], (1, 2))
    write_static(artifact, "ORIGIN", Point, Point(0, 0))
    write_fn(artifact, "names", list[str], ["a"])

    source = render_unit(artifact)
    header, digest_line, body = source.split("\n", 2)

    assert header == UNIT_HEADER
    assert digest_line == f"{DIGEST_PREFIX}{body_digest(body)}"
    assert "from fixtures.demo_types import Point\n" in body
    assert "from typing import Final, Optional\n" in body
    assert "__declarations__ = {'CONST_A': 'const', 'ORIGIN': 'static', 'names': 'fn'}" in body
    assert "CONST_A: Final[Optional[tuple[int, int]]] = (1, 2)\n" in body
    assert "ORIGIN: Point = Point(x=0, y=0)\n" in body
    assert "def names() -> list[str]:\n    return ['a']\n" in body


def test_rendering_is_deterministic() -> None:
    def _artifact() -> Artifact:
        artifact = Artifact()
        write_static(artifact, "S", frozenset[str], frozenset({"x", "y", "z"}))
        write_consts(artifact, "G", int, [("G1", 1), ("G2", 2)])
        return artifact

    assert render_unit(_artifact()) == render_unit(_artifact())


def test_declaration_shadowing_an_import_is_rejected() -> None:
    artifact = Artifact()
    write_static(artifact, "Point", Point, Point(1, 1))

    with pytest.raises(NameCollisionError, match="Point"):
        render_unit(artifact)


def test_write_struct_validates_type_expressions() -> None:
    artifact = Artifact()

    with pytest.raises(InvalidTypeExpressionError, match="list\\[int"):
        write_struct(artifact, "Broken", [("items", "list[int")])
    with pytest.raises(InvalidNameError):
        write_struct(artifact, "Twice", [("a", "int"), ("a", "str")])
    assert len(artifact) == 0


def test_struct_and_accessors_in_flushed_unit(tmp_path: Path) -> None:
    unit = tmp_path / "unit.py"
    with open_artifact(unit) as artifact:
        write_struct(artifact, "Limits", [("low", "int"), ("high", "Optional[int]")],
                     imports=[("typing", "Optional")])
        write_array_fn(artifact, "table", int, [[1, 2], [3, 4]], 2)
        write_vector_fn(artifact, "rows", str, ["a", "b"])

    symbols = use_symbols("Limits", "table", "rows", unit=unit)

    limits = symbols["Limits"](low=1, high=None)
    assert limits.high is None
    with pytest.raises(AttributeError):
        limits.low = 2
    assert symbols["table"]() == ((1, 2), (3, 4))
    assert symbols["rows"]() == ["a", "b"]
    assert symbols["rows"]() is not symbols["rows"]()


def test_failed_run_keeps_previous_unit(tmp_path: Path) -> None:
    unit = tmp_path / "unit.py"
    with open_artifact(unit) as artifact:
        write_const(artifact, "VERSION", int, 1)
    previous = unit.read_bytes()

    with pytest.raises(TypeMismatchError), open_artifact(unit) as artifact:
        write_const(artifact, "VERSION", int, 2)
        write_const(artifact, "BROKEN", int, "not an int")

    assert unit.read_bytes() == previous


def test_failed_replace_leaves_no_partial_unit(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    unit = tmp_path / "out" / "unit.py"
    first = Artifact()
    write_const(first, "VERSION", int, 1)
    flush_artifact(first, unit)
    previous = unit.read_bytes()

    def _failing_replace(src: object, dst: object) -> None:
        msg = "disk full"
        raise OSError(msg)

    monkeypatch.setattr(os, "replace", _failing_replace)
    second = Artifact()
    write_const(second, "VERSION", int, 2)

    with pytest.raises(OSError, match="disk full"):
        flush_artifact(second, unit)

    assert unit.read_bytes() == previous
    assert sorted(p.name for p in unit.parent.iterdir()) == ["unit.py"]
    assert not second.closed
