"""
lottery.runtime.ledger — a deterministic, block-height driven host ledger.

The ledger owns the block clock, account balances, contract storage and the
commit log. Every entry point that changes state (`deploy`, `call`, `fund`)
runs inside a journal checkpoint:

    begin → debit budget → move attached value → run contract code
          → check record order → commit state → append buffered records → receipt
    (any exception) → revert state → drop buffered records → re-raise

so a call is all-or-nothing across storage, balances, the contract registry
and the commit log. Calls execute at (height, tx_index); `tx_index` counts
successful calls within the current block. With `automine` enabled (default)
each successful call is followed by one new block. Failed calls do not
advance the clock. A ledger opened on a non-empty commit log starts at the
block after the log's newest record.

Time is block height only; there is no wall clock.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from lottery import logging as llog
from lottery.config import LotteryConfig
from lottery.constants import (COST_CALL, COST_DEPLOY, COST_RECORD,
                               COST_RECORD_FIELD, COST_STORAGE_WRITE,
                               RECORD_ROUND_CREATED)
from lottery.errors import InvalidCall, LotteryError
from lottery.metrics import METRICS, Metrics
from lottery.state.accounts import transfer
from lottery.state.commit_log import CommitLog, open_commit_log
from lottery.state.journal import Journal
from lottery.types.context import TxContext
from lottery.types.receipt import CallStatus, Receipt
from lottery.types.records import Record
from lottery.utils.bytes import AddressLike, to_address, to_hex

from .address import derive_contract_address
from .contract import CallContext, Contract, is_external
from .meter import ResourceMeter

log = llog.get_logger(__name__)


class Ledger:
    """
    Parameters
    ----------
    config : LotteryConfig | None
        Round length, start height, automine and commit-log settings.
    commit_log : CommitLog | None
        Record store; built from `config.commit_log` when omitted.
    metrics : Metrics
        Prometheus instruments (process-wide singleton by default).
    """

    def __init__(
        self,
        config: Optional[LotteryConfig] = None,
        *,
        commit_log: Optional[CommitLog] = None,
        metrics: Metrics = METRICS,
    ) -> None:
        self.config = config if config is not None else LotteryConfig()
        self.config.validate()
        self.journal = Journal()
        self.commit_log: CommitLog = (
            commit_log if commit_log is not None else open_commit_log(self.config)
        )
        self.metrics = metrics
        self._height = self.config.start_height
        last = self.commit_log.last_position
        if last is not None:
            # Resume after the newest block already in the log.
            self._height = max(self._height, last[0] + 1)
        self._tx_index = 0
        self._pending: List[Record] = []

    # --------------------------------------------------------------------- #
    # Block clock
    # --------------------------------------------------------------------- #

    @property
    def height(self) -> int:
        """Current block number; calls execute in this block."""
        return self._height

    @property
    def tx_index(self) -> int:
        """Index of the next call within the current block."""
        return self._tx_index

    def mine(self, n: int = 1) -> int:
        """Advance the clock by `n` blocks and return the new height."""
        if n < 0:
            raise ValueError("n must be >= 0")
        if n:
            self._height += n
            self._tx_index = 0
        return self._height

    # --------------------------------------------------------------------- #
    # Accounts
    # --------------------------------------------------------------------- #

    def fund(self, address: AddressLike, amount: int) -> int:
        """Credit an externally-owned account (genesis/faucet). Returns the new balance."""
        addr = to_address(address)
        self.journal.begin()
        try:
            self.journal.ensure_account_for_write(addr).credit(amount)
        except Exception:
            self.journal.revert()
            raise
        self.journal.commit()
        return self.balance_of(addr)

    def balance_of(self, address: AddressLike) -> int:
        return self.journal.balance_of(to_address(address))

    def nonce_of(self, address: AddressLike) -> int:
        acc = self.journal.get_account(to_address(address))
        return 0 if acc is None else acc.nonce

    def contract_at(self, address: AddressLike) -> Contract:
        """Return the contract deployed at `address`; InvalidCall if there is none."""
        addr = to_address(address)
        inst = self.journal.get_contract(addr)
        if inst is None:
            raise InvalidCall("no contract at address", address=to_hex(addr))
        return inst

    # --------------------------------------------------------------------- #
    # Entry points
    # --------------------------------------------------------------------- #

    def deploy(self, tx: TxContext, cls: Type[Contract], *args: Any) -> Receipt:
        """Deploy `cls` from `tx.sender`, running its constructor with `args`."""

        def run(meter: ResourceMeter) -> Tuple[Any, Optional[bytes]]:
            addr = self.create_contract(tx.sender, cls, args, value=tx.value, meter=meter)
            return addr, addr

        return self._execute(tx, f"deploy:{cls.__name__}", None, run)

    def call(
        self,
        tx: TxContext,
        address: AddressLike,
        method: str,
        *args: Any,
        **kwargs: Any,
    ) -> Receipt:
        """Invoke an `@external` method; `tx.value` moves from sender to the contract."""
        target = to_address(address)

        def run(meter: ResourceMeter) -> Tuple[Any, Optional[bytes]]:
            inst = self.contract_at(target)
            fn = getattr(inst, method, None) if not method.startswith("_") else None
            if fn is None or not is_external(fn):
                raise InvalidCall(
                    "method is not external", address=to_hex(target), method=method
                )
            transfer(self.journal, tx.sender, target, tx.value)
            ctx = CallContext(
                ledger=self,
                address=target,
                caller=tx.sender,
                value=tx.value,
                meter=meter,
            )
            return fn(ctx, *args, **kwargs), None

        return self._execute(tx, method, target, run)

    def get_records(
        self,
        *,
        emitter: Optional[AddressLike] = None,
        name: Optional[str] = None,
        from_block: Optional[int] = None,
        to_block: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        return self.commit_log.get_records(
            emitter=emitter,
            name=name,
            from_block=from_block,
            to_block=to_block,
            limit=limit,
        )

    # --------------------------------------------------------------------- #
    # Host services used by CallContext
    # --------------------------------------------------------------------- #

    def create_contract(
        self,
        deployer: bytes,
        cls: Type[Contract],
        args: Tuple[Any, ...],
        *,
        value: int,
        meter: ResourceMeter,
    ) -> bytes:
        """Create an account for `cls` at a derived address, fund it and run its constructor."""
        if not (isinstance(cls, type) and issubclass(cls, Contract)):
            raise TypeError("cls must be a Contract subclass")
        meter.debit(COST_DEPLOY, reason=f"deploy {cls.__name__}")

        deployer_acc = self.journal.ensure_account_for_write(deployer)
        addr = derive_contract_address(deployer, deployer_acc.nonce)
        deployer_acc.increment_nonce()

        self.journal.create_account(addr)
        transfer(self.journal, deployer, addr, value)

        inst = cls(self, addr)
        self.journal.register_contract(addr, inst)
        ctx = CallContext(
            ledger=self,
            address=addr,
            caller=deployer,
            value=value,
            meter=meter,
        )
        inst.constructor(ctx, *args)
        log.debug(
            "contract deployed",
            extra={"contract_type": cls.__name__, "address": addr, "value": value},
        )
        return addr

    def charge_storage_write(self, meter: ResourceMeter) -> None:
        meter.debit(COST_STORAGE_WRITE, reason="storage write")

    def emit_record(self, ctx: CallContext, name: str, fields: Mapping[str, Any]) -> None:
        ctx.meter.debit(
            COST_RECORD + COST_RECORD_FIELD * len(fields), reason=f"record {name}"
        )
        rec = Record.build(
            emitter=ctx.address,
            name=name,
            fields=fields,
            block_number=self._height,
            tx_index=self._tx_index,
            log_index=len(self._pending),
        )
        self._pending.append(rec)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _execute(
        self,
        tx: TxContext,
        what: str,
        target: Optional[bytes],
        run: Callable[[ResourceMeter], Tuple[Any, Optional[bytes]]],
    ) -> Receipt:
        if self.journal.depth():
            raise RuntimeError("ledger calls cannot be nested; use CallContext.deploy")
        block, index = self._height, self._tx_index
        meter = ResourceMeter(tx.gas_limit)

        with llog.trace_scope():
            llog.bind(height=block, tx_index=index)
            if target is not None:
                llog.bind(contract=target)

            self.journal.begin()
            self._pending = []
            try:
                meter.debit(COST_CALL, reason="call")
                result, created = run(meter)
                self.commit_log.check_order(self._pending)
            except Exception as exc:
                self.journal.revert()
                self._pending = []
                code = exc.code if isinstance(exc, LotteryError) else type(exc).__name__
                self.metrics.record_failure(code)
                log.warning(
                    "call reverted",
                    extra={
                        "call": what,
                        "sender": tx.sender,
                        "code": code,
                        "reason": str(exc),
                    },
                )
                raise

            self.journal.commit()
            records = tuple(self._pending)
            self._pending = []
            self._publish(records)

            receipt = Receipt(
                status=CallStatus.SUCCESS,
                block_number=block,
                tx_index=index,
                return_value=result,
                records=records,
                resources_used=meter.used,
                contract_address=created,
            )
            self.metrics.record_call(CallStatus.SUCCESS.value)
            log.info(
                "call ok",
                extra={
                    "call": what,
                    "sender": tx.sender,
                    "records": len(records),
                    "resources_used": meter.used,
                },
            )

        self._tx_index += 1
        if self.config.automine:
            self.mine(1)
        return receipt

    def _publish(self, records: Tuple[Record, ...]) -> None:
        for rec in records:
            self.commit_log.append(rec)
            self.metrics.record_appended(rec.name)
            if rec.name == RECORD_ROUND_CREATED:
                self.metrics.record_round_created()

    def snapshot(self) -> Dict[str, Any]:
        """Small JSON-safe summary of the clock, for logs and the CLI."""
        return {"height": self._height, "txIndex": self._tx_index}


__all__ = ["Ledger"]
