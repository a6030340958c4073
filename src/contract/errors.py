"""Build-time error taxonomy.

Every failure is detected while generating or importing a unit, never at the
consumer's runtime. None of these are recoverable locally: they abort the
generation or import step.
"""

from __future__ import annotations

from typing import Any


class BakeError(Exception):
    """Base class for all bakeconst build-time failures."""


class UnsupportedTypeError(BakeError):
    """No emit capability is registered for a declared type."""

    def __init__(self, type_name: str, reason: str | None = None) -> None:
        self.type_name = type_name
        msg = f"No emit capability registered for type '{type_name}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class TypeMismatchError(BakeError):
    """A value does not fit the type it was declared with."""

    def __init__(self, type_name: str, value: Any) -> None:
        self.type_name = type_name
        self.value = value
        msg = (
            f"Value of type '{type(value).__qualname__}' cannot be emitted "
            f"as '{type_name}'"
        )
        super().__init__(msg)


class DimensionMismatchError(BakeError):
    """The declared dimension exceeds the nesting depth of the value."""

    def __init__(self, dimension: int, message: str) -> None:
        self.dimension = dimension
        super().__init__(f"Dimension {dimension}: {message}")


class NameCollisionError(BakeError):
    """Two declarations were registered with the same name in one run."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Name '{name}' is already declared in this artifact")


class InvalidNameError(BakeError):
    """A declaration name is not usable as a binding in the unit."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        super().__init__(f"Invalid declaration name '{name}': {reason}")


class InvalidTypeExpressionError(BakeError):
    """A textual type expression does not parse as Python."""

    def __init__(self, expression: str) -> None:
        self.expression = expression
        super().__init__(f"Couldn't parse the type expression '{expression}'")


class PerfectHashSearchError(BakeError):
    """No valid displacement assignment was found within the search bound."""

    def __init__(self, key_count: int, attempts: int) -> None:
        self.key_count = key_count
        self.attempts = attempts
        msg = (
            f"Perfect hash search failed for {key_count} keys "
            f"after {attempts} attempts"
        )
        super().__init__(msg)


class DuplicateKeyError(BakeError):
    """A key was added twice to the same collection builder."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Duplicate key {key!r}")


class BuilderFinalizedError(BakeError):
    """An entry was added after the builder's tables were computed."""


class ArtifactClosedError(BakeError):
    """A declaration was written after the artifact was flushed."""


class MissingSymbolError(BakeError):
    """An import requested names that were never declared."""

    def __init__(self, names: list[str], unit: str) -> None:
        self.names = names
        self.unit = unit
        listed = ", ".join(f"'{name}'" for name in names)
        super().__init__(f"Symbol(s) {listed} not declared in unit {unit}")


__all__ = [
    "ArtifactClosedError",
    "BakeError",
    "BuilderFinalizedError",
    "DimensionMismatchError",
    "DuplicateKeyError",
    "InvalidNameError",
    "InvalidTypeExpressionError",
    "MissingSymbolError",
    "NameCollisionError",
    "PerfectHashSearchError",
    "TypeMismatchError",
    "UnsupportedTypeError",
]
