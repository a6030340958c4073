"""Read-only perfect-hash collections constructed by generated units.

Generated code calls these constructors with tables computed at build time;
nothing here hashes or sorts at import time beyond storing the tables. Every
lookup compares the stored key against the probe, so keys that were never
inserted are reported absent.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from collections.abc import Set as AbstractSet
from typing import Generic, TypeVar, overload

from contract.errors import UnsupportedTypeError
from perfect_hash.hashing import get_index, hash_key, key_bytes

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T")

Disps = tuple[tuple[int, int], ...]


def _probe(key: object, seed: int, disps: Disps, length: int) -> int | None:
    if not length:
        return None
    try:
        encoded = key_bytes(key)
    except UnsupportedTypeError:
        # Such a key can never have been inserted.
        return None
    return get_index(hash_key(encoded, seed), disps, length)


class Map(Mapping, Generic[K, V]):
    """An immutable map with lookup via a perfect hash function.

    Iteration follows slot order, which is unrelated to insertion order.
    """

    __slots__ = ("_disps", "_entries", "_seed")

    def __init__(
        self, seed: int, disps: Disps, entries: tuple[tuple[K, V], ...]
    ) -> None:
        self._seed = seed
        self._disps = disps
        self._entries = entries

    def _find(self, key: object) -> tuple[K, V] | None:
        slot = _probe(key, self._seed, self._disps, len(self._entries))
        if slot is None:
            return None
        entry = self._entries[slot]
        if entry[0] == key:
            return entry
        return None

    def __getitem__(self, key: K) -> V:
        entry = self._find(key)
        if entry is None:
            raise KeyError(key)
        return entry[1]

    def __contains__(self, key: object) -> bool:
        return self._find(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return (key for key, _ in self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self._entries)!r})"

    @overload
    def get(self, key: K) -> V | None: ...

    @overload
    def get(self, key: K, default: T) -> V | T: ...

    def get(self, key, default=None):
        entry = self._find(key)
        if entry is None:
            return default
        return entry[1]

    def get_key(self, key: K) -> K | None:
        entry = self._find(key)
        return None if entry is None else entry[0]

    def get_entry(self, key: K) -> tuple[K, V] | None:
        return self._find(key)

    def entries(self) -> Iterator[tuple[K, V]]:
        return iter(self._entries)


class OrderedMap(Map[K, V]):
    """An immutable map that iterates in insertion order.

    ``idxs[slot]`` is the insertion position of the entry stored in ``slot``.
    """

    __slots__ = ("_idxs",)

    def __init__(
        self,
        seed: int,
        disps: Disps,
        idxs: tuple[int, ...],
        entries: tuple[tuple[K, V], ...],
    ) -> None:
        super().__init__(seed, disps, entries)
        self._idxs = idxs

    def _position(self, key: object) -> int | None:
        slot = _probe(key, self._seed, self._disps, len(self._idxs))
        if slot is None:
            return None
        position = self._idxs[slot]
        if self._entries[position][0] == key:
            return position
        return None

    def _find(self, key: object) -> tuple[K, V] | None:
        position = self._position(key)
        return None if position is None else self._entries[position]

    def get_index(self, key: K) -> int | None:
        """Return the insertion position of ``key``, if present."""
        return self._position(key)

    def index(self, position: int) -> tuple[K, V] | None:
        """Return the entry inserted at ``position``, if in range."""
        if 0 <= position < len(self._entries):
            return self._entries[position]
        return None


class Set(AbstractSet, Generic[K]):
    """An immutable set with membership via a perfect hash function."""

    __slots__ = ("_map",)

    _map: Map[K, None]

    def __init__(self, seed: int, disps: Disps, keys: tuple[K, ...]) -> None:
        self._map = Map(seed, disps, tuple((key, None) for key in keys))

    @classmethod
    def _from_iterable(cls, it):
        # Results of set operators are plain frozensets.
        return frozenset(it)

    def __contains__(self, key: object) -> bool:
        return key in self._map

    def __len__(self) -> int:
        return len(self._map)

    def __iter__(self) -> Iterator[K]:
        return iter(self._map)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"

    def get_key(self, key: K) -> K | None:
        return self._map.get_key(key)


class OrderedSet(Set[K]):
    """An immutable set that iterates in insertion order."""

    __slots__ = ()

    _map: OrderedMap[K, None]

    def __init__(
        self, seed: int, disps: Disps, idxs: tuple[int, ...], keys: tuple[K, ...]
    ) -> None:
        self._map = OrderedMap(seed, disps, idxs, tuple((key, None) for key in keys))

    def get_index(self, key: K) -> int | None:
        return self._map.get_index(key)

    def index(self, position: int) -> K | None:
        entry = self._map.index(position)
        return None if entry is None else entry[0]


__all__ = ["Map", "OrderedMap", "OrderedSet", "Set"]
