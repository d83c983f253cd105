"""
lottery.types.context — the transaction context supplied by the caller.

The host runtime the protocol was designed for derives the caller's identity
and attached value implicitly. Here they are explicit: every ledger entry
point takes a `TxContext`.

* `sender` is a raw 20-byte address (hex strings are accepted and normalized).
* `value` is the attached amount in the ledger's smallest unit (wei-like).
* `gas_limit` is the call's computational budget; None means unlimited.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from lottery.utils.bytes import AddressLike, to_address, to_hex


@dataclass(frozen=True)
class TxContext:
    sender: bytes
    value: int = 0
    gas_limit: Optional[int] = None

    def __init__(
        self,
        sender: AddressLike,
        value: int = 0,
        gas_limit: Optional[int] = None,
    ) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError("value must be a non-negative int")
        if gas_limit is not None and (
            isinstance(gas_limit, bool) or not isinstance(gas_limit, int) or gas_limit < 0
        ):
            raise ValueError("gas_limit must be a non-negative int or None")
        object.__setattr__(self, "sender", to_address(sender, name="sender"))
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "gas_limit", gas_limit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": to_hex(self.sender),
            "value": self.value,
            "gasLimit": self.gas_limit,
        }


__all__ = ["TxContext"]
