"""
lottery.commit_reveal
=====================

Commit–reveal primitive for lottery rounds.

A round is opened with two public commitments derived from a secret chosen
by the round owner:

    saltHash  = H^N(secret)                       # N chained applications
    saltNHash = H(secret || uint64_be(N) || secret)

Publishing both fixes the secret and the chain length before any participant
acts. Opening the pair later (secret, N) lets anyone recompute and check both.

Submodules:
    - chain.py  : iterate_hash / bind_commitment / build_commitment_pair.
    - verify.py : constant-time verification of a claimed opening.
"""

from __future__ import annotations

from .chain import (CommitmentPair, bind_commitment, build_commitment_pair,
                    iterate_hash, secret_from_text)
from .verify import verify_commitments

__all__ = [
    "CommitmentPair",
    "iterate_hash",
    "bind_commitment",
    "build_commitment_pair",
    "secret_from_text",
    "verify_commitments",
]
