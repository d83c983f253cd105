"""
Verify that an opening (secret, N) matches a published commitment pair.

We recompute both digests and compare each against the published value with
`consteq` (hmac.compare_digest). Both must match; the error names the first
commitment that diverges (saltHash is checked first).
"""

from __future__ import annotations

from typing import Optional

from lottery.constants import DEFAULT_HASH_FN, DEFAULT_MAX_CHAIN_ITERATIONS
from lottery.errors import CommitmentMismatch
from lottery.utils.bytes import BytesLike, consteq, to_hex

from .chain import CommitmentPair, bind_commitment, iterate_hash


def verify_commitments(
    pair: CommitmentPair,
    secret: BytesLike,
    n: int,
    *,
    hash_fn: str = DEFAULT_HASH_FN,
    max_iterations: Optional[int] = DEFAULT_MAX_CHAIN_ITERATIONS,
    raise_on_fail: bool = True,
) -> bool:
    """
    Check an opening against `pair`.

    Returns True on success. On mismatch raises CommitmentMismatch, or returns
    False when `raise_on_fail` is False. Malformed inputs (wrong secret width,
    n < 1) raise ValueError/TypeError regardless.
    """
    checks = (
        ("saltHash", pair.salt_hash,
         lambda: iterate_hash(secret, n, hash_fn=hash_fn, max_iterations=max_iterations)),
        ("saltNHash", pair.salt_n_hash,
         lambda: bind_commitment(secret, n, hash_fn=hash_fn)),
    )
    for which, expected, compute in checks:
        got = compute()
        if not consteq(expected, got):
            if raise_on_fail:
                raise CommitmentMismatch(
                    f"{which} does not match opening",
                    which=which,
                    expected=to_hex(expected),
                    got=to_hex(got),
                )
            return False
    return True


__all__ = ["verify_commitments"]
