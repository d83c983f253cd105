"""
lottery.errors — typed failures raised by the ledger, contracts and commitments.

Every ledger call either commits fully or reverts fully; these exceptions are
what a reverted call surfaces to its caller. They carry a stable machine `code`
and optional JSON-safe `data` so higher layers (CLI, logs, metrics) can render
them without importing contract internals.

Hierarchy
---------
LotteryError (base)
 ├─ Unauthorized        : caller is not the stored owner
 ├─ InvalidTransition   : operation not allowed from the round's current state
 ├─ OutOfResources      : insufficient attached value or computational budget
 ├─ InvalidCall         : unknown contract address or non-external method
 └─ CommitmentMismatch  : a (secret, N) opening does not match a commitment pair
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class LotteryError(Exception):
    """
    Base lottery error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'UNAUTHORIZED').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "lottery error"
    code: str = "LOTTERY_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs and CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def _merge(data: Optional[Dict[str, Any]], **extra: Any) -> Optional[Dict[str, Any]]:
    d: Dict[str, Any] = {}
    if data:
        d.update(data)
    for k, v in extra.items():
        if v is not None:
            d.setdefault(k, v)
    return d or None


class Unauthorized(LotteryError):
    """
    The caller is not allowed to perform the operation.

    Raised by `LotteryRoundFactory.create_round` when the caller differs from
    the stored owner. Identity comparison is exact; there is no delegation.
    """
    def __init__(
        self,
        message: str = "caller is not the owner",
        *,
        caller: Optional[str] = None,
        owner: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            data=_merge(data, caller=caller, owner=owner),
        )


class InvalidTransition(LotteryError):
    """An operation was attempted against a round state that does not support it."""
    def __init__(
        self,
        message: str = "invalid state transition",
        *,
        current: Optional[str] = None,
        requested: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INVALID_TRANSITION",
            data=_merge(data, current=current, requested=requested),
        )


class OutOfResources(LotteryError):
    """
    Insufficient attached value or computational budget to complete a call.

    Typical triggers:
      - the sender cannot cover the value attached to the call
      - the call's budget is exhausted by deployments, writes or records
      - a hash chain longer than the configured maximum is requested
    """
    def __init__(
        self,
        message: str = "out of resources",
        *,
        needed: Optional[int] = None,
        available: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="OUT_OF_RESOURCES",
            data=_merge(data, needed=needed, available=available),
        )


class InvalidCall(LotteryError):
    """The target address holds no contract, or the method is not external."""
    def __init__(
        self,
        message: str = "invalid call",
        *,
        address: Optional[str] = None,
        method: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INVALID_CALL",
            data=_merge(data, address=address, method=method),
        )


class CommitmentMismatch(LotteryError):
    """
    A claimed (secret, N) opening does not reproduce a published commitment.

    `which` is "saltHash" or "saltNHash"; both must match for an opening to
    be accepted.
    """
    def __init__(
        self,
        message: str = "opening does not match commitment",
        *,
        which: Optional[str] = None,
        expected: Optional[str] = None,
        got: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="COMMITMENT_MISMATCH",
            data=_merge(data, which=which, expected=expected, got=got),
        )


__all__ = [
    "LotteryError",
    "Unauthorized",
    "InvalidTransition",
    "OutOfResources",
    "InvalidCall",
    "CommitmentMismatch",
]
