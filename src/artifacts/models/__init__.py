"""Model namespace for bakeconst declaration schemas."""

from artifacts.models.declaration import Declaration, StructField

__all__ = ["Declaration", "StructField"]
