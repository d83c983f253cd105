"""
lottery.runtime
---------------

The host ledger and the contracts that run on it:

- Ledger              : block clock, accounts, journaled calls, commit log
- CallContext         : what a contract method sees about its call
- LotteryRoundFactory : owner-gated round creator
- LotteryRound        : one round's commitments, balance and deadline
"""

from __future__ import annotations

from .address import address_from_label, derive_contract_address
from .contract import CallContext, Contract, external
from .factory import LotteryRoundFactory
from .ledger import Ledger
from .meter import ResourceMeter
from .round import LotteryRound, RoundState

__all__ = [
    "Ledger",
    "CallContext",
    "Contract",
    "external",
    "ResourceMeter",
    "LotteryRoundFactory",
    "LotteryRound",
    "RoundState",
    "derive_contract_address",
    "address_from_label",
]
