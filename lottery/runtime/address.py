"""
Deterministic contract addresses.

    address = keccak256(DOMAIN_CONTRACT_ADDRESS || deployer || uint64_be(nonce))[-20:]

`nonce` is the deployer's account nonce before the deployment bumps it, so
successive deployments by the same account never collide.
"""

from __future__ import annotations

from lottery.constants import ADDRESS_LEN, DOMAIN_CONTRACT_ADDRESS
from lottery.utils.bytes import to_address
from lottery.utils.hash import keccak256


def derive_contract_address(deployer: bytes, nonce: int) -> bytes:
    if nonce < 0:
        raise ValueError("nonce must be non-negative")
    d = to_address(deployer, name="deployer")
    return keccak256(DOMAIN_CONTRACT_ADDRESS + d + nonce.to_bytes(8, "big"))[-ADDRESS_LEN:]


def address_from_label(label: str) -> bytes:
    """A stable externally-owned address for a human label (tests, CLI demos)."""
    return keccak256(b"lottery.account:" + label.encode("utf-8"))[-ADDRESS_LEN:]


__all__ = ["derive_contract_address", "address_from_label"]
