"""
lottery.runtime.contract — contract base class and the per-call context.

Contracts are plain Python classes deployed on a `Ledger`. The ledger builds
an instance at a derived address, then runs its `constructor(ctx, *args)` with
a `CallContext` describing the deployment. Afterwards only methods marked
with `@external` are callable through `Ledger.call`.

A `CallContext` is the explicit form of what a host runtime usually provides
implicitly: the executing contract's address, the immediate caller, the
attached value, the current block number and call index, and access to
storage, record emission and nested deployment. Every storage write, record
and deployment is charged against the call's ResourceMeter.

Contract state that can change after deployment lives in journaled storage
(`ctx.sstore` / `self._sload`). Attributes set in `constructor` are immutable
by convention and are never written again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional, Type, TypeVar

from lottery.config import LotteryConfig
from lottery.errors import Unauthorized
from lottery.utils.bytes import to_hex

from .meter import ResourceMeter

if TYPE_CHECKING:
    from .ledger import Ledger

F = TypeVar("F", bound=Callable[..., Any])

_EXTERNAL_ATTR = "__lottery_external__"

OWNER_KEY = b"access:owner"


def external(fn: F) -> F:
    """Mark a contract method as callable through `Ledger.call`."""
    setattr(fn, _EXTERNAL_ATTR, True)
    return fn


def is_external(obj: Any) -> bool:
    return callable(obj) and bool(getattr(obj, _EXTERNAL_ATTR, False))


class CallContext:
    """Execution context handed to constructors and external methods."""

    __slots__ = ("_ledger", "address", "caller", "value", "meter")

    def __init__(
        self,
        *,
        ledger: "Ledger",
        address: bytes,
        caller: bytes,
        value: int,
        meter: ResourceMeter,
    ) -> None:
        self._ledger = ledger
        self.address = address
        self.caller = caller
        self.value = value
        self.meter = meter

    @property
    def block_number(self) -> int:
        return self._ledger.height

    @property
    def tx_index(self) -> int:
        return self._ledger.tx_index

    @property
    def config(self) -> LotteryConfig:
        return self._ledger.config

    @property
    def balance(self) -> int:
        """Current balance of the executing contract."""
        return self._ledger.balance_of(self.address)

    # ----- storage -----------------------------------------------------------

    def sload(self, key: bytes) -> bytes:
        return self._ledger.journal.storage_get(self.address, key)

    def sstore(self, key: bytes, value: bytes) -> None:
        self._ledger.charge_storage_write(self.meter)
        self._ledger.journal.storage_set(self.address, key, value)

    # ----- records & nested deployment ----------------------------------------

    def emit(self, name: str, **fields: Any) -> None:
        """Append a record from this contract; materialized only if the call commits."""
        self._ledger.emit_record(self, name, fields)

    def deploy(self, cls: Type["Contract"], *args: Any, value: int = 0) -> bytes:
        """Deploy `cls` from this contract, forwarding `value` to it."""
        return self._ledger.create_contract(
            self.address, cls, args, value=value, meter=self.meter
        )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"CallContext(address={to_hex(self.address)}, caller={to_hex(self.caller)}, "
            f"value={self.value}, block={self.block_number})"
        )


class Contract:
    """
    Base class for ledger contracts.

    Subclasses override `constructor` and mark their callable surface with
    `@external`. Read-only accessors may be plain properties.
    """

    def __init__(self, ledger: "Ledger", address: bytes) -> None:
        self._ledger = ledger
        self.address = address

    def constructor(self, ctx: CallContext, *args: Any) -> None:
        return None

    @property
    def balance(self) -> int:
        return self._ledger.balance_of(self.address)

    def _sload(self, key: bytes) -> bytes:
        return self._ledger.journal.storage_get(self.address, key)

    # ----- ownership ---------------------------------------------------------

    def _init_owner(self, ctx: CallContext, owner: bytes) -> None:
        if not self._sload(OWNER_KEY):
            ctx.sstore(OWNER_KEY, owner)

    def _get_owner(self) -> Optional[bytes]:
        v = self._sload(OWNER_KEY)
        return v or None

    def _require_owner(self, ctx: CallContext) -> None:
        """Raise Unauthorized unless the immediate caller is the stored owner."""
        owner = self._get_owner()
        if owner is None or owner != ctx.caller:
            raise Unauthorized(
                caller=to_hex(ctx.caller),
                owner=None if owner is None else to_hex(owner),
            )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"{type(self).__name__}({to_hex(self.address)})"


__all__ = [
    "OWNER_KEY",
    "external",
    "is_external",
    "CallContext",
    "Contract",
]
