"""
lottery.runtime.meter — per-call computational budget.

A ResourceMeter is created for every ledger call from the transaction's
`gas_limit`. Deployments, storage writes and record emission debit fixed costs
(see `lottery.constants`). Debiting past the limit raises OutOfResources,
which reverts the whole call. A limit of None means unlimited; usage is still
tracked and reported on the receipt.

No fees are charged; the meter only bounds work.
"""

from __future__ import annotations

from typing import Optional

from lottery.errors import OutOfResources


class ResourceMeter:
    """
    Deterministic budget meter.

    Parameters
    ----------
    limit : int | None
        Total units made available to the call; None disables the bound.
    """

    __slots__ = ("_limit", "_used")

    def __init__(self, limit: Optional[int] = None) -> None:
        if limit is not None and int(limit) < 0:
            raise ValueError("resource limit must be non-negative")
        self._limit: Optional[int] = None if limit is None else int(limit)
        self._used: int = 0

    @property
    def limit(self) -> Optional[int]:
        return self._limit

    @property
    def used(self) -> int:
        return self._used

    @property
    def remaining(self) -> Optional[int]:
        if self._limit is None:
            return None
        rem = self._limit - self._used
        return rem if rem > 0 else 0

    def debit(self, amount: int, *, reason: Optional[str] = None) -> None:
        """Consume `amount` units, raising OutOfResources if insufficient remain."""
        amt = int(amount)
        if amt < 0:
            raise ValueError("resource amount must be non-negative")
        remaining = self.remaining
        if remaining is not None and amt > remaining:
            msg = "out of resources"
            if reason:
                msg = f"{msg}: {reason}"
            raise OutOfResources(msg, needed=self._used + amt, available=self._limit)
        self._used += amt

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"ResourceMeter(limit={self._limit}, used={self._used})"


__all__ = ["ResourceMeter"]
