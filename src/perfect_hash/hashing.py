"""Stable key hashing for perfect-hash tables.

Python's builtin ``hash`` is salted per process, so tables computed at build
time hash a canonical byte encoding of each key instead. The encoding follows
Python equality: ``True`` encodes like ``1`` and ``IntEnum``/``StrEnum`` members
encode like their plain values.
"""

from __future__ import annotations

import enum
import hashlib
import struct
from typing import NamedTuple

from contract.errors import UnsupportedTypeError

_U32 = 0xFFFFFFFF
_LEN = struct.Struct("<I")
_WORDS = struct.Struct("<III")


class Hashes(NamedTuple):
    g: int
    f1: int
    f2: int


def key_bytes(key: object) -> bytes:
    """Encode a key canonically.

    Raises:
        UnsupportedTypeError: If the key's type can't be perfect-hashed.
    """
    if key is None:
        return b"n"
    if isinstance(key, int):
        return b"i" + int.__repr__(int(key)).encode("ascii")
    if isinstance(key, str):
        return b"s" + str.__str__(key).encode("utf-8")
    if isinstance(key, bytes):
        return b"b" + bytes(key)
    if isinstance(key, enum.Enum):
        cls = type(key)
        return f"e{cls.__module__}:{cls.__qualname__}.{key.name}".encode()
    if isinstance(key, tuple):
        parts = [b"t", _LEN.pack(len(key))]
        for item in key:
            encoded = key_bytes(item)
            parts.append(_LEN.pack(len(encoded)))
            parts.append(encoded)
        return b"".join(parts)
    raise UnsupportedTypeError(
        type(key).__qualname__, "keys of this type can't be perfect-hashed"
    )


def hash_key(encoded: bytes, seed: int) -> Hashes:
    """Hash an encoded key into the three words used by the CHD scheme."""
    digest = hashlib.blake2b(
        encoded,
        digest_size=12,
        key=(seed & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "little"),
    ).digest()
    return Hashes(*_WORDS.unpack(digest))


def displace(f1: int, f2: int, d1: int, d2: int) -> int:
    return (d2 + f1 * d1 + f2) & _U32


def get_index(hashes: Hashes, disps: tuple[tuple[int, int], ...], length: int) -> int:
    """Resolve the slot of a hashed key from the displacement table."""
    d1, d2 = disps[hashes.g % len(disps)]
    return displace(hashes.f1, hashes.f2, d1, d2) % length


__all__ = ["Hashes", "displace", "get_index", "hash_key", "key_bytes"]
