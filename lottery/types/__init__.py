"""
lottery.types
-------------

Plain dataclasses passed between the ledger, the commit log and callers:

- TxContext : who is calling, with how much attached value and budget
- Record    : one immutable commit-log entry (with canonical field encoding)
- Receipt   : what a successful call returns
"""

from __future__ import annotations

from .context import TxContext
from .receipt import CallStatus, Receipt
from .records import Record, decode_value, encode_value

__all__ = [
    "TxContext",
    "Record",
    "encode_value",
    "decode_value",
    "CallStatus",
    "Receipt",
]
