"""
lottery.utils.hash — deterministic hashing wrappers.

Goals
-----
- Strictly bytes-in, bytes-out (no implicit text encoding).
- One registry of named 256-bit primitives so commitments can be computed by
  name ("keccak256" by default, the `sha3` of Ethereum-style hosts).

Provided APIs
-------------
- keccak256(data) -> bytes          # Keccak-256 (pre-standard padding), via pycryptodome
- sha3_256(data) -> bytes           # FIPS-202 SHA3-256, via hashlib
- get_hash_fn(name) -> Callable[[bytes], bytes]
"""

from __future__ import annotations

import hashlib
from typing import Callable, Dict

from Crypto.Hash import keccak as _keccak

HashFn = Callable[[bytes], bytes]


def _ensure_bytes(buf: object, name: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    raise TypeError(f"{name} must be bytes-like (got {type(buf).__name__})")


def keccak256(data: bytes | bytearray | memoryview) -> bytes:
    """Keccak-256 as used by Ethereum-style ledgers."""
    h = _keccak.new(digest_bits=256)
    h.update(_ensure_bytes(data, "data"))
    return h.digest()


def sha3_256(data: bytes | bytearray | memoryview) -> bytes:
    """Return SHA3-256(data)."""
    return hashlib.sha3_256(_ensure_bytes(data, "data")).digest()


_HASH_FNS: Dict[str, HashFn] = {
    "keccak256": keccak256,
    "sha3_256": sha3_256,
}


def get_hash_fn(name: str) -> HashFn:
    """Resolve a hash primitive by name; raises ValueError for unknown names."""
    try:
        return _HASH_FNS[name]
    except KeyError:
        raise ValueError(
            f"unknown hash function {name!r}; expected one of {sorted(_HASH_FNS)}"
        ) from None


__all__ = [
    "HashFn",
    "keccak256",
    "sha3_256",
    "get_hash_fn",
]
