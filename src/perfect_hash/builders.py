"""Build-time accumulators for perfect-hash collections.

A builder collects entries during generation. Its tables are computed once,
on ``finalize()``; afterwards the builder is immutable. Emitting a builder
through a ``Map``/``Set``/``OrderedMap``/``OrderedSet`` declaration finalizes
it implicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from contract.errors import BuilderFinalizedError, DuplicateKeyError
from perfect_hash.generator import HashState, generate_hash
from perfect_hash.hashing import key_bytes
from perfect_hash.runtime import Map, OrderedMap, OrderedSet, Set

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rules.config import HashSettings

K = TypeVar("K")
V = TypeVar("V")


class _Builder:
    ordered: ClassVar[bool] = False

    def __init__(self) -> None:
        self._keys: list[Any] = []
        self._values: list[Any] = []
        self._seen: set[bytes] = set()
        self._encoded: list[bytes] = []
        self._state: HashState | None = None

    def _add(self, key: Any, value: Any) -> None:
        if self._state is not None:
            msg = f"{type(self).__name__} is finalized; no entries can be added"
            raise BuilderFinalizedError(msg)
        encoded = key_bytes(key)
        if encoded in self._seen:
            raise DuplicateKeyError(key)
        self._seen.add(encoded)
        self._encoded.append(encoded)
        self._keys.append(key)
        self._values.append(value)

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def finalized(self) -> bool:
        return self._state is not None

    def finalize(self, settings: HashSettings | None = None) -> HashState:
        """Compute the perfect-hash tables, once.

        Later calls return the tables computed by the first one.
        """
        if self._state is None:
            self._state = generate_hash(self._encoded, settings)
        return self._state

    def keys_in_order(self) -> Iterator[Any]:
        """Keys as they must be laid out: slot order, or insertion order."""
        state = self.finalize()
        indices = range(len(self._keys)) if self.ordered else state.slots
        return (self._keys[i] for i in indices)

    def values_in_order(self) -> Iterator[Any]:
        state = self.finalize()
        indices = range(len(self._keys)) if self.ordered else state.slots
        return (self._values[i] for i in indices)


class MapBuilder(_Builder, Generic[K, V]):
    """A build-time builder for an immutable ``Map``."""

    def entry(self, key: K, value: V) -> None:
        """Add an entry; adding an existing key raises ``DuplicateKeyError``."""
        self._add(key, value)

    def build(self, settings: HashSettings | None = None) -> Map[K, V]:
        """Finalize and return the map the generated unit would construct."""
        state = self.finalize(settings)
        return Map(
            state.seed,
            state.disps,
            tuple(zip(self.keys_in_order(), self.values_in_order())),
        )


class OrderedMapBuilder(MapBuilder[K, V]):
    """A build-time builder for an insertion-ordered ``OrderedMap``."""

    ordered = True

    def build(self, settings: HashSettings | None = None) -> OrderedMap[K, V]:
        state = self.finalize(settings)
        return OrderedMap(
            state.seed,
            state.disps,
            state.slots,
            tuple(zip(self._keys, self._values)),
        )


class SetBuilder(_Builder, Generic[K]):
    """A build-time builder for an immutable ``Set``."""

    def entry(self, key: K) -> None:
        """Add a key; adding an existing key raises ``DuplicateKeyError``."""
        self._add(key, None)

    def build(self, settings: HashSettings | None = None) -> Set[K]:
        state = self.finalize(settings)
        return Set(state.seed, state.disps, tuple(self.keys_in_order()))


class OrderedSetBuilder(SetBuilder[K]):
    """A build-time builder for an insertion-ordered ``OrderedSet``."""

    ordered = True

    def build(self, settings: HashSettings | None = None) -> OrderedSet[K]:
        state = self.finalize(settings)
        return OrderedSet(state.seed, state.disps, state.slots, tuple(self._keys))


__all__ = [
    "MapBuilder",
    "OrderedMapBuilder",
    "OrderedSetBuilder",
    "SetBuilder",
]
