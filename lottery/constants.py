"""
Lottery protocol constants.

This module centralizes:
- Round timing (closing deadline in blocks)
- Commitment widths (digest, secret, iteration-count encoding)
- Address derivation tags and widths
- Record (event) names published to the commit log
- Fixed resource costs charged against a call's computational budget

Networks may override operational knobs via `lottery.config.LotteryConfig`,
but code that needs stable compile-time defaults can import from here.
"""

from __future__ import annotations

# -----------------------------
# Round timing
# -----------------------------
# Blocks between a round's creation and its closing block (~30 days at 60s).
ROUND_LENGTH: int = 43_200

# Version string stamped into records by factories deployed with defaults.
DEFAULT_FACTORY_VERSION: str = "0.1.2"

# -----------------------------
# Commitment widths
# -----------------------------
DIGEST_LEN: int = 32
SECRET_LEN: int = 32
# N is bound into saltNHash as a fixed-width big-endian unsigned integer.
ITERATIONS_ENCODING_LEN: int = 8
MAX_ITERATIONS_ENCODABLE: int = (1 << (8 * ITERATIONS_ENCODING_LEN)) - 1

# Guard-rail for local hash-chain computation; not a protocol limit.
DEFAULT_MAX_CHAIN_ITERATIONS: int = 1 << 24

# Hash primitive used for both commitments unless configured otherwise.
DEFAULT_HASH_FN: str = "keccak256"

# -----------------------------
# Addresses
# -----------------------------
ADDRESS_LEN: int = 20
# Keep stable; changing it changes every derived contract address.
DOMAIN_CONTRACT_ADDRESS: bytes = b"lottery.contract.address.v1"

# -----------------------------
# Record names
# -----------------------------
RECORD_ROUND_CREATED: str = "RoundCreated"
RECORD_ROUND_STARTED: str = "RoundStarted"

# -----------------------------
# Resource costs (budget units)
# -----------------------------
COST_CALL: int = 21_000
COST_DEPLOY: int = 32_000
COST_STORAGE_WRITE: int = 5_000
COST_RECORD: int = 1_500
COST_RECORD_FIELD: int = 375

__all__ = [
    "ROUND_LENGTH",
    "DEFAULT_FACTORY_VERSION",
    "DIGEST_LEN",
    "SECRET_LEN",
    "ITERATIONS_ENCODING_LEN",
    "MAX_ITERATIONS_ENCODABLE",
    "DEFAULT_MAX_CHAIN_ITERATIONS",
    "DEFAULT_HASH_FN",
    "ADDRESS_LEN",
    "DOMAIN_CONTRACT_ADDRESS",
    "RECORD_ROUND_CREATED",
    "RECORD_ROUND_STARTED",
    "COST_CALL",
    "COST_DEPLOY",
    "COST_STORAGE_WRITE",
    "COST_RECORD",
    "COST_RECORD_FIELD",
]
