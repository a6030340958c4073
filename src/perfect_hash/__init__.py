"""Perfect-hash collections: build-time builders and their runtime tables."""

from perfect_hash.builders import (
    MapBuilder,
    OrderedMapBuilder,
    OrderedSetBuilder,
    SetBuilder,
)
from perfect_hash.generator import HashState, generate_hash
from perfect_hash.runtime import Map, OrderedMap, OrderedSet, Set

__all__ = [
    "HashState",
    "Map",
    "MapBuilder",
    "OrderedMap",
    "OrderedMapBuilder",
    "OrderedSet",
    "OrderedSetBuilder",
    "Set",
    "SetBuilder",
    "generate_hash",
]
