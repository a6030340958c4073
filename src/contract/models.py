"""Declaration models exposed at the unit boundary."""

from artifacts.models.declaration import Declaration, StructField

__all__ = ["Declaration", "StructField"]
