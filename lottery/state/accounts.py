"""
lottery.state.accounts — account records and value transfers.

An Account holds two fields:

- nonce:   deployment counter, bumped each time the account deploys a contract
- balance: amount in the ledger's smallest unit (wei-like)

Contract accounts are created by deployment; externally-owned accounts appear
when funded. `transfer` is the only way value moves between accounts; it
raises OutOfResources when the sender cannot cover the amount.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from lottery.errors import OutOfResources
from lottery.utils.bytes import to_hex

if TYPE_CHECKING:
    from .journal import Journal


def _ensure_amount(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return value


@dataclass(slots=True)
class Account:
    nonce: int = 0
    balance: int = 0

    def __post_init__(self) -> None:
        self.nonce = _ensure_amount("nonce", self.nonce)
        self.balance = _ensure_amount("balance", self.balance)

    def increment_nonce(self) -> None:
        self.nonce += 1

    def credit(self, amount: int) -> None:
        self.balance += _ensure_amount("amount", amount)

    def debit(self, amount: int) -> None:
        """Decrease balance by `amount`; raises OutOfResources if insufficient."""
        amt = _ensure_amount("amount", amount)
        if self.balance < amt:
            raise OutOfResources(
                "insufficient balance for attached value",
                needed=amt,
                available=self.balance,
            )
        self.balance -= amt

    def copy(self) -> "Account":
        return Account(nonce=self.nonce, balance=self.balance)

    def to_dict(self) -> dict:
        return {"nonce": self.nonce, "balance": self.balance}


def transfer(journal: "Journal", sender: bytes, recipient: bytes, amount: int) -> None:
    """
    Move `amount` from `sender` to `recipient` inside the journal's top layer.

    A zero amount is a no-op. The recipient account is created if absent.
    """
    _ensure_amount("amount", amount)
    if amount == 0:
        return
    src = journal.get_account_for_write(sender)
    if src is None:
        raise OutOfResources(
            f"sender {to_hex(sender)} has no balance",
            needed=amount,
            available=0,
        )
    src.debit(amount)
    journal.ensure_account_for_write(recipient).credit(amount)


__all__ = ["Account", "transfer"]
