"""Stable unit contract surface for bakeconst.

This module exposes the minimal, stable Python surface shared by the
generation phase and the consumers of a unit. Treat these exports as the
authoritative boundary.
"""

from contract.artifacts import (
    BINDING_KINDS,
    DECLARATIONS_NAME,
    GROUPS_NAME,
    SCHEMA_VERSION_NAME,
    SCRIPT_RUN_NAME,
    UNIT_SCHEMA_VERSION,
    BindingKind,
)
from contract.errors import (
    ArtifactClosedError,
    BakeError,
    BuilderFinalizedError,
    DimensionMismatchError,
    DuplicateKeyError,
    InvalidNameError,
    InvalidTypeExpressionError,
    MissingSymbolError,
    NameCollisionError,
    PerfectHashSearchError,
    TypeMismatchError,
    UnsupportedTypeError,
)


def __getattr__(name: str) -> object:
    if name in {"Declaration", "StructField"}:
        from contract.models import Declaration, StructField

        return {"Declaration": Declaration, "StructField": StructField}[name]

    if name in {"ValidationMessage", "ValidationResult", "validate_unit"}:
        from contract.validation import (
            ValidationMessage,
            ValidationResult,
            validate_unit,
        )

        return {
            "ValidationMessage": ValidationMessage,
            "ValidationResult": ValidationResult,
            "validate_unit": validate_unit,
        }[name]

    msg = f"module 'contract' has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "BINDING_KINDS",
    "DECLARATIONS_NAME",
    "GROUPS_NAME",
    "SCHEMA_VERSION_NAME",
    "SCRIPT_RUN_NAME",
    "UNIT_SCHEMA_VERSION",
    "ArtifactClosedError",
    "BakeError",
    "BindingKind",
    "BuilderFinalizedError",
    "Declaration",
    "DimensionMismatchError",
    "DuplicateKeyError",
    "InvalidNameError",
    "InvalidTypeExpressionError",
    "MissingSymbolError",
    "NameCollisionError",
    "PerfectHashSearchError",
    "StructField",
    "TypeMismatchError",
    "UnsupportedTypeError",
    "ValidationMessage",
    "ValidationResult",
    "validate_unit",
]
