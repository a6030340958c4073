"""CHD perfect-hash generation.

Keys are distributed into buckets of roughly ``lambda_`` keys each. Buckets are
placed largest first, each one searching for a displacement pair ``(d1, d2)``
that sends all of its keys to free slots. Hash seeds are drawn from a
generator seeded with a fixed value, so a given key sequence always yields the
same tables.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from contract.errors import PerfectHashSearchError
from logs import get_logger
from perfect_hash.hashing import displace, hash_key
from rules.config import HashSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from perfect_hash.hashing import Hashes

logger = get_logger("perfect_hash")


@dataclass(frozen=True)
class HashState:
    """Finalized perfect-hash tables.

    ``slots[i]`` holds the index (in insertion order) of the key stored in
    slot ``i``.
    """

    seed: int
    disps: tuple[tuple[int, int], ...]
    slots: tuple[int, ...]


def generate_hash(
    encoded_keys: Sequence[bytes], settings: HashSettings | None = None
) -> HashState:
    """Compute perfect-hash tables for a sequence of distinct encoded keys.

    Raises:
        PerfectHashSearchError: If no seed out of ``settings.max_attempts``
            admits a displacement assignment.
    """
    if settings is None:
        settings = HashSettings()
    rng = random.Random(settings.seed)
    for attempt in range(1, settings.max_attempts + 1):
        seed = rng.getrandbits(64)
        state = try_generate_hash(encoded_keys, seed, settings.lambda_)
        if state is not None:
            logger.debug(
                "Placed %d keys with seed %d after %d attempt(s)",
                len(encoded_keys),
                seed,
                attempt,
            )
            return state
        logger.debug("Seed %d admits no displacement assignment", seed)
    raise PerfectHashSearchError(len(encoded_keys), settings.max_attempts)


def try_generate_hash(
    encoded_keys: Sequence[bytes], seed: int, lambda_: int
) -> HashState | None:
    hashes: list[Hashes] = [hash_key(key, seed) for key in encoded_keys]
    table_len = len(hashes)
    buckets_len = (table_len + lambda_ - 1) // lambda_

    buckets: list[list[int]] = [[] for _ in range(buckets_len)]
    for i, hashed in enumerate(hashes):
        buckets[hashed.g % buckets_len].append(i)

    # Stable sort: equal-sized buckets keep their index order.
    order = sorted(range(buckets_len), key=lambda b: len(buckets[b]), reverse=True)

    slot_map: list[int | None] = [None] * table_len
    try_map = [0] * table_len
    generation = 0
    disps: list[tuple[int, int]] = [(0, 0)] * buckets_len

    for bucket_idx in order:
        keys = buckets[bucket_idx]
        placed = _place_bucket(keys, hashes, slot_map, try_map, generation)
        if placed is None:
            return None
        generation, disps[bucket_idx] = placed

    return HashState(
        seed=seed,
        disps=tuple(disps),
        slots=tuple(slot for slot in slot_map if slot is not None),
    )


def _place_bucket(
    keys: list[int],
    hashes: list[Hashes],
    slot_map: list[int | None],
    try_map: list[int],
    generation: int,
) -> tuple[int, tuple[int, int]] | None:
    table_len = len(slot_map)
    for d1 in range(table_len):
        for d2 in range(table_len):
            generation += 1
            values_to_add: list[tuple[int, int]] = []
            for key in keys:
                hashed = hashes[key]
                idx = displace(hashed.f1, hashed.f2, d1, d2) % table_len
                if slot_map[idx] is not None or try_map[idx] == generation:
                    break
                try_map[idx] = generation
                values_to_add.append((idx, key))
            else:
                for idx, key in values_to_add:
                    slot_map[idx] = key
                return generation, (d1, d2)
    return None


__all__ = ["HashState", "generate_hash", "try_generate_hash"]
