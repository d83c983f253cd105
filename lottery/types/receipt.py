"""
lottery.types.receipt — call outcome returned by the ledger.

Only successful calls produce a receipt; a failed call reverts and re-raises
its error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from lottery.utils.bytes import to_hex

from .records import Record, encode_value


class CallStatus(str, Enum):
    SUCCESS = "success"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass(frozen=True)
class Receipt:
    """
    Attributes:
        status:           always SUCCESS for returned receipts
        block_number:     block the call executed in
        tx_index:         call index within that block
        return_value:     the method's return value (e.g. a new round address)
        records:          records appended by the call, in emission order
        resources_used:   budget units charged to the call
        contract_address: set for deployments
    """

    status: CallStatus
    block_number: int
    tx_index: int
    return_value: Any = None
    records: Tuple[Record, ...] = field(default_factory=tuple)
    resources_used: int = 0
    contract_address: Optional[bytes] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "blockNumber": self.block_number,
            "txIndex": self.tx_index,
            "returnValue": encode_value(self.return_value),
            "records": [r.to_dict() for r in self.records],
            "resourcesUsed": self.resources_used,
            "contractAddress": (
                to_hex(self.contract_address) if self.contract_address is not None else None
            ),
        }


__all__ = ["CallStatus", "Receipt"]
