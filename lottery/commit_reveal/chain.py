"""
Hash-chain commitments for lottery rounds.

Definitions
-----------
iterate_hash(secret, N):
    d_1 = H(secret)
    d_k = H(d_{k-1})          for k = 2..N    (raw 32-byte digests)
    returns d_N

bind_commitment(secret, N):
    H(secret || uint64_be(N) || secret)

- H is Keccak-256 unless another registered primitive is named.
- N >= 1 and must fit in 64 bits; N = 0 is rejected.
- Local computation is capped at `max_iterations`; exceeding the cap raises
  OutOfResources.

Both functions are pure and deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from lottery.constants import (DEFAULT_HASH_FN, DEFAULT_MAX_CHAIN_ITERATIONS,
                               DIGEST_LEN, ITERATIONS_ENCODING_LEN,
                               MAX_ITERATIONS_ENCODABLE, SECRET_LEN)
from lottery.errors import OutOfResources
from lottery.metrics import METRICS
from lottery.utils.bytes import BytesLike, ensure_len, to_hex
from lottery.utils.hash import get_hash_fn


def _check_iterations(n: int, max_iterations: Optional[int]) -> int:
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError("n must be int")
    if n < 1:
        raise ValueError("n must be >= 1")
    if n > MAX_ITERATIONS_ENCODABLE:
        raise ValueError("n must fit in an unsigned 64-bit integer")
    if max_iterations is not None and n > max_iterations:
        raise OutOfResources(
            "hash chain longer than the configured maximum",
            needed=n,
            available=max_iterations,
        )
    return n


def _secret(secret: BytesLike) -> bytes:
    return ensure_len(secret, SECRET_LEN, name="secret")


def iterate_hash(
    secret: BytesLike,
    n: int,
    *,
    hash_fn: str = DEFAULT_HASH_FN,
    max_iterations: Optional[int] = DEFAULT_MAX_CHAIN_ITERATIONS,
) -> bytes:
    """
    Apply the hash `n` times starting from `secret` and return the last digest.

    Raises:
        ValueError: n < 1, n not encodable in 64 bits, or secret not 32 bytes.
        OutOfResources: n exceeds `max_iterations`.
    """
    s = _secret(secret)
    _check_iterations(n, max_iterations)
    h = get_hash_fn(hash_fn)
    d = h(s)
    for _ in range(n - 1):
        d = h(d)
    return d


def bind_commitment(
    secret: BytesLike,
    n: int,
    *,
    hash_fn: str = DEFAULT_HASH_FN,
) -> bytes:
    """Digest binding `secret` and `n`: H(secret || uint64_be(n) || secret)."""
    s = _secret(secret)
    _check_iterations(n, None)
    h = get_hash_fn(hash_fn)
    return h(s + n.to_bytes(ITERATIONS_ENCODING_LEN, "big") + s)


@dataclass(frozen=True, slots=True)
class CommitmentPair:
    """The two public commitments that open a round."""
    salt_hash: bytes
    salt_n_hash: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "salt_hash", ensure_len(self.salt_hash, DIGEST_LEN, name="salt_hash"))
        object.__setattr__(self, "salt_n_hash", ensure_len(self.salt_n_hash, DIGEST_LEN, name="salt_n_hash"))

    def to_dict(self) -> dict:
        return {"saltHash": to_hex(self.salt_hash), "saltNHash": to_hex(self.salt_n_hash)}


def build_commitment_pair(
    secret: BytesLike,
    n: int,
    *,
    hash_fn: str = DEFAULT_HASH_FN,
    max_iterations: Optional[int] = DEFAULT_MAX_CHAIN_ITERATIONS,
) -> CommitmentPair:
    """Compute (saltHash, saltNHash) for `secret` and chain length `n`."""
    salt_hash = iterate_hash(secret, n, hash_fn=hash_fn, max_iterations=max_iterations)
    salt_n_hash = bind_commitment(secret, n, hash_fn=hash_fn)
    METRICS.observe_chain(n)
    return CommitmentPair(salt_hash=salt_hash, salt_n_hash=salt_n_hash)


def secret_from_text(text: str, *, hash_fn: str = DEFAULT_HASH_FN) -> bytes:
    """Derive a 32-byte secret as H(utf8(text)), e.g. secret_from_text("secret")."""
    if not isinstance(text, str):
        raise TypeError("text must be str")
    return get_hash_fn(hash_fn)(text.encode("utf-8"))


__all__ = [
    "CommitmentPair",
    "iterate_hash",
    "bind_commitment",
    "build_commitment_pair",
    "secret_from_text",
]
