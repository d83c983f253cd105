"""
Host ledger semantics: all-or-nothing calls, the block clock, value transfers,
budgets and the external-method surface.
"""
import logging

import pytest

from lottery.config import LotteryConfig
from lottery.constants import (COST_CALL, COST_DEPLOY, COST_RECORD,
                               COST_RECORD_FIELD, COST_STORAGE_WRITE,
                               DOMAIN_CONTRACT_ADDRESS, RECORD_ROUND_CREATED)
from lottery.errors import InvalidCall, OutOfResources
from lottery.runtime import (CallContext, Contract, Ledger,
                             LotteryRoundFactory, address_from_label,
                             derive_contract_address, external)
from lottery.types import CallStatus, Record, TxContext
from lottery.utils.hash import keccak256

from .conftest import START_BALANCE


class Scratch(Contract):
    """Test contract exercising storage, records, nested deploys and failures."""

    def constructor(self, ctx: CallContext, tag: str = "scratch") -> None:
        self.tag = tag
        ctx.sstore(b"tag", tag.encode())

    @external
    def write(self, ctx: CallContext, key: bytes, value: bytes, fail: bool = False) -> int:
        ctx.sstore(key, value)
        ctx.emit("Wrote", key=key, value=value)
        if fail:
            raise RuntimeError("boom")
        return ctx.balance

    @external
    def spawn(self, ctx: CallContext, fail: bool = False) -> bytes:
        child = ctx.deploy(Scratch, "child", value=ctx.value)
        if fail:
            raise RuntimeError("after spawn")
        return child

    @external
    def read(self, ctx: CallContext, key: bytes) -> bytes:
        return ctx.sload(key)

    @external
    def whoami(self, ctx: CallContext):
        return {"caller": ctx.caller, "value": ctx.value, "block": ctx.block_number, "tx": ctx.tx_index}

    def hidden(self, ctx: CallContext) -> None:
        raise AssertionError("must not be reachable")


@pytest.fixture
def scratch(ledger, owner):
    return ledger.deploy(TxContext(owner), Scratch).contract_address


def test_fund_and_balances(ledger, owner):
    assert ledger.balance_of(owner) == START_BALANCE
    assert ledger.balance_of(b"\x01" * 20) == 0
    assert ledger.fund(owner, 5) == START_BALANCE + 5
    with pytest.raises(ValueError):
        ledger.fund(owner, -1)
    assert ledger.balance_of(owner) == START_BALANCE + 5


def test_contract_addresses_are_derived_from_deployer_nonce(ledger, owner):
    assert ledger.nonce_of(owner) == 0
    a = ledger.deploy(TxContext(owner), Scratch).contract_address
    b = ledger.deploy(TxContext(owner), Scratch).contract_address
    assert a == derive_contract_address(owner, 0)
    assert b == derive_contract_address(owner, 1)
    assert a == keccak256(DOMAIN_CONTRACT_ADDRESS + owner + (0).to_bytes(8, "big"))[-20:]
    assert ledger.nonce_of(owner) == 2


def test_successful_call_commits_and_automines(ledger, owner, scratch):
    h = ledger.height
    r = ledger.call(TxContext(owner, value=7), scratch, "write", b"k", b"v")
    assert r.status is CallStatus.SUCCESS
    assert r.block_number == h
    assert r.tx_index == 0
    assert r.return_value == 7
    assert ledger.height == h + 1
    assert ledger.journal.storage_get(scratch, b"k") == b"v"
    assert ledger.balance_of(scratch) == 7
    assert ledger.call(TxContext(owner), scratch, "read", b"k").return_value == b"v"
    assert [rec.name for rec in ledger.get_records(emitter=scratch)] == ["Wrote"]


def test_failed_call_reverts_everything(ledger, owner, scratch):
    h = ledger.height
    with pytest.raises(RuntimeError, match="boom"):
        ledger.call(TxContext(owner, value=7), scratch, "write", b"k", b"v", fail=True)
    assert ledger.journal.storage_get(scratch, b"k") == b""
    assert ledger.balance_of(scratch) == 0
    assert ledger.balance_of(owner) == START_BALANCE
    assert ledger.get_records(emitter=scratch) == []
    assert ledger.height == h
    assert ledger.journal.depth() == 0


def test_failed_nested_deploy_leaves_no_contract(ledger, owner, scratch):
    child_addr = derive_contract_address(scratch, 0)
    with pytest.raises(RuntimeError):
        ledger.call(TxContext(owner, value=3), scratch, "spawn", fail=True)
    with pytest.raises(InvalidCall):
        ledger.contract_at(child_addr)
    assert ledger.nonce_of(scratch) == 0

    r = ledger.call(TxContext(owner, value=3), scratch, "spawn")
    assert r.return_value == child_addr
    child = ledger.contract_at(child_addr)
    assert child.tag == "child"
    assert child.balance == 3
    assert ledger.balance_of(scratch) == 0


def test_call_context_fields(ledger, owner, scratch):
    ledger.mine(10)
    r = ledger.call(TxContext(owner, value=2), scratch, "whoami")
    assert r.return_value == {
        "caller": owner,
        "value": 2,
        "block": r.block_number,
        "tx": 0,
    }


def test_manual_mining_orders_calls_within_a_block(config, metrics, owner):
    config.automine = False
    ledger = Ledger(config, metrics=metrics)
    ledger.fund(owner, 10)
    s = ledger.deploy(TxContext(owner), Scratch).contract_address
    r1 = ledger.call(TxContext(owner), s, "write", b"a", b"1")
    r2 = ledger.call(TxContext(owner), s, "write", b"b", b"2")
    assert (r1.block_number, r1.tx_index) == (1, 1)
    assert (r2.block_number, r2.tx_index) == (1, 2)
    assert ledger.mine(3) == 4
    assert ledger.tx_index == 0
    with pytest.raises(ValueError):
        ledger.mine(-1)
    positions = [rec.position for rec in ledger.get_records()]
    assert positions == sorted(positions) == [(1, 1, 0), (1, 2, 0)]


@pytest.mark.parametrize(
    "method",
    ["hidden", "constructor", "_sload", "nope", "tag"],
)
def test_only_external_methods_are_callable(ledger, owner, scratch, method):
    with pytest.raises(InvalidCall) as ei:
        ledger.call(TxContext(owner), scratch, method)
    assert ei.value.code == "INVALID_CALL"


def test_unknown_address(ledger, owner):
    with pytest.raises(InvalidCall):
        ledger.call(TxContext(owner), b"\x42" * 20, "create_round")
    with pytest.raises(InvalidCall):
        ledger.contract_at(owner)


def test_insufficient_funds(ledger, owner, scratch):
    with pytest.raises(OutOfResources) as ei:
        ledger.call(TxContext(owner, value=START_BALANCE + 1), scratch, "whoami")
    assert ei.value.data == {"needed": START_BALANCE + 1, "available": START_BALANCE}
    stranger = b"\x07" * 20
    with pytest.raises(OutOfResources):
        ledger.call(TxContext(stranger, value=1), scratch, "whoami")


def test_resource_accounting(ledger, owner, scratch):
    r = ledger.call(TxContext(owner), scratch, "write", b"k", b"v")
    assert r.resources_used == COST_CALL + COST_STORAGE_WRITE + COST_RECORD + 2 * COST_RECORD_FIELD

    d = ledger.deploy(TxContext(owner), Scratch)
    assert d.resources_used == COST_CALL + COST_DEPLOY + COST_STORAGE_WRITE


def test_budget_exhaustion_reverts(ledger, owner, scratch):
    limit = COST_CALL + COST_STORAGE_WRITE  # not enough for the record
    with pytest.raises(OutOfResources):
        ledger.call(TxContext(owner, gas_limit=limit), scratch, "write", b"k", b"v")
    assert ledger.journal.storage_get(scratch, b"k") == b""

    with pytest.raises(OutOfResources):
        ledger.deploy(TxContext(owner, gas_limit=COST_CALL), LotteryRoundFactory)


def test_nested_entry_points_rejected(ledger, owner):
    class Reentrant(Contract):
        @external
        def go(self, ctx):
            return self._ledger.call(TxContext(ctx.caller), ctx.address, "go")

    addr = ledger.deploy(TxContext(owner), Reentrant).contract_address
    with pytest.raises(RuntimeError, match="nested"):
        ledger.call(TxContext(owner), addr, "go")
    assert ledger.journal.depth() == 0


def test_tx_context_validation(owner):
    with pytest.raises(ValueError):
        TxContext(owner, value=-1)
    with pytest.raises(ValueError):
        TxContext(owner, gas_limit=-5)
    with pytest.raises(ValueError):
        TxContext(b"\x00" * 3)
    assert TxContext("0x" + owner.hex()).sender == owner


def test_metrics_and_logs(ledger, registry, owner, scratch, caplog):
    caplog.set_level(logging.INFO, logger="lottery")
    reg = registry

    ledger.call(TxContext(owner), scratch, "write", b"k", b"v")
    with pytest.raises(InvalidCall):
        ledger.call(TxContext(owner), scratch, "hidden")

    # deploy of `scratch` + the write
    assert reg.get_sample_value("lottery_ledger_calls_total", {"outcome": "success"}) == 2
    assert reg.get_sample_value("lottery_ledger_calls_total", {"outcome": "invalid_call"}) == 1
    assert reg.get_sample_value("lottery_ledger_records_total", {"name": "Wrote"}) == 1

    msgs = [(r.levelname, r.getMessage()) for r in caplog.records if r.name.startswith("lottery")]
    assert ("INFO", "call ok") in msgs
    assert ("WARNING", "call reverted") in msgs


def _create_round(ledger, owner, factory, pair, value):
    return ledger.call(
        TxContext(owner, value=value), factory, "create_round", pair.salt_hash, pair.salt_n_hash
    )


def test_restart_on_jsonl_log_resumes_clock(tmp_path, metrics, pair):
    cfg = LotteryConfig(commit_log="jsonl", commit_log_path=str(tmp_path / "records.jsonl"))
    owner = address_from_label("owner")

    first = Ledger(cfg, metrics=metrics)
    first.fund(owner, 100)
    f1 = first.deploy(TxContext(owner), LotteryRoundFactory).contract_address
    r1 = _create_round(first, owner, f1, pair, 7)
    first.commit_log.close()

    second = Ledger(cfg, metrics=metrics)
    assert second.height == r1.block_number + 1
    second.fund(owner, 100)
    f2 = second.deploy(TxContext(owner), LotteryRoundFactory).contract_address
    r2 = _create_round(second, owner, f2, pair, 7)
    assert r2.block_number > r1.block_number
    assert second.contract_at(f2).round_count == 1
    assert second.balance_of(r2.return_value) == 7

    positions = [rec.position for rec in second.get_records()]
    assert len(positions) == 4
    assert positions == sorted(positions) == sorted(set(positions))
    second.commit_log.close()


def test_out_of_order_records_revert_the_call(ledger, owner, factory, pair):
    # Another writer already holds a later position in the current block.
    ledger.commit_log.append(
        Record.build(
            emitter=b"\x09" * 20,
            name="Foreign",
            fields={},
            block_number=ledger.height,
            tx_index=5,
            log_index=0,
        )
    )
    height, balance = ledger.height, ledger.balance_of(owner)

    with pytest.raises(ValueError, match="must increase"):
        _create_round(ledger, owner, factory, pair, 7)

    assert ledger.contract_at(factory).round_count == 0
    assert ledger.balance_of(owner) == balance
    assert ledger.balance_of(factory) == 0
    assert ledger.get_records(name=RECORD_ROUND_CREATED) == []
    assert ledger.height == height
    assert ledger.journal.depth() == 0
