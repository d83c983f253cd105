"""
lottery.utils.bytes
===================

Small utilities for hex/bytes conversion, strict length guards and address
normalization. Stdlib only.

Highlights
----------
- :func:`to_hex` / :func:`from_hex` with strict validation.
- :func:`as_bytes` to normalize bytes-like values.
- :func:`ensure_len` length guard used for digests and secrets.
- :func:`to_address` accepts 20 raw bytes or a ``0x``-prefixed hex string.
- :func:`consteq` timing-safe equality (hmac.compare_digest).
"""

from __future__ import annotations

import hmac
import re
from typing import Union

from lottery.constants import ADDRESS_LEN

BytesLike = Union[bytes, bytearray, memoryview]
AddressLike = Union[bytes, bytearray, memoryview, str]

__all__ = [
    "BytesLike",
    "AddressLike",
    "to_hex",
    "from_hex",
    "as_bytes",
    "ensure_len",
    "to_address",
    "consteq",
]

_HEX_RE = re.compile(r"^(?:0x)?[0-9a-fA-F]*$")


def from_hex(s: str) -> bytes:
    """
    Convert a hex string (with optional ``0x``) to bytes.

    Rejects whitespace, non-hex characters and odd nibble counts.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a str")
    if not _HEX_RE.match(s):
        raise ValueError("invalid hex string (characters or whitespace)")
    body = s[2:] if s.startswith(("0x", "0X")) else s
    if len(body) % 2 != 0:
        raise ValueError("hex string must have an even number of nibbles")
    return bytes.fromhex(body)


def to_hex(b: BytesLike, *, prefix: str = "0x") -> str:
    return (prefix or "") + as_bytes(b).hex()


def as_bytes(x: BytesLike) -> bytes:
    """Normalize bytes-like to immutable :class:`bytes`."""
    if isinstance(x, bytes):
        return x
    if isinstance(x, (bytearray, memoryview)):
        return bytes(x)
    raise TypeError(f"expected bytes-like, got {type(x)!r}")


def ensure_len(b: BytesLike, expected: int, *, name: str = "value") -> bytes:
    """Ensure ``len(b) == expected``; raises ValueError otherwise."""
    bb = as_bytes(b)
    if len(bb) != expected:
        raise ValueError(f"{name} must be {expected} bytes, got {len(bb)}")
    return bb


def to_address(a: AddressLike, *, name: str = "address") -> bytes:
    """Normalize an address given as raw bytes or hex into 20 bytes."""
    raw = from_hex(a) if isinstance(a, str) else as_bytes(a)
    return ensure_len(raw, ADDRESS_LEN, name=name)


def consteq(a: BytesLike, b: BytesLike) -> bool:
    """Timing-safe equality for two bytes-like values."""
    return hmac.compare_digest(as_bytes(a), as_bytes(b))
