"""Declaration models.

A declaration is one named, typed binding of the generated unit: a constant,
a static, a zero-argument accessor function, or a record type.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from contract.artifacts import UNIT_SCHEMA_VERSION, BindingKind


class StructField(BaseModel):
    """A field of a declared record type."""

    model_config = ConfigDict(frozen=True)

    name: str
    type_text: str


class Declaration(BaseModel):
    """A single binding exported by the generation phase."""

    model_config = ConfigDict(frozen=True)

    schema_version: int = UNIT_SCHEMA_VERSION
    name: str
    kind: BindingKind
    type_text: str = Field(description="Annotation text of the binding")
    fragment: str = Field(default="", description="Source reconstructing the value")
    dimension: int = Field(
        default=0,
        ge=0,
        description="Outer levels emitted as fixed-size arrays (0 = not an array)",
    )
    shape: tuple[int, ...] = Field(
        default=(), description="Lengths of the fixed array levels"
    )
    imports: tuple[tuple[str, str], ...] = Field(
        default=(), description="(module, name) pairs the binding needs"
    )
    group: str | None = Field(default=None, description="Group alias, if any")
    fields: tuple[StructField, ...] = Field(
        default=(), description="Record fields (kind 'type' only)"
    )


__all__ = ["Declaration", "StructField"]
