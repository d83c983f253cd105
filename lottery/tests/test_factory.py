"""
End-to-end round creation through the factory in the reference
deployment scenario: an owner-deployed factory at version "0.1.2" creating
rounds for secret = H("secret"), N = 12.
"""
import pytest

from lottery.constants import (RECORD_ROUND_CREATED, RECORD_ROUND_STARTED,
                               ROUND_LENGTH)
from lottery.errors import OutOfResources, Unauthorized
from lottery.runtime import LotteryRound, LotteryRoundFactory, RoundState
from lottery.types import TxContext

from .conftest import ETHER, START_BALANCE


def _create(ledger, factory, sender, pair, value=0, picks=b""):
    return ledger.call(
        TxContext(sender, value=value),
        factory,
        "create_round",
        pair.salt_hash,
        pair.salt_n_hash,
        picks,
    )


def test_factory_defaults(ledger, factory, owner):
    f = ledger.contract_at(factory)
    assert isinstance(f, LotteryRoundFactory)
    assert f.owner == owner
    assert f.version == "0.1.2"
    assert f.round_count == 0
    assert f.rounds() == []


def test_factory_custom_version(ledger, owner):
    r = ledger.deploy(TxContext(owner), LotteryRoundFactory, "9.9.9")
    assert ledger.contract_at(r.contract_address).version == "9.9.9"


@pytest.mark.parametrize("value", [0, 10 * ETHER])
def test_owner_creates_round_with_value(ledger, factory, owner, pair, value):
    receipt = _create(ledger, factory, owner, pair, value=value)
    round_addr = receipt.return_value

    rnd = ledger.contract_at(round_addr)
    assert isinstance(rnd, LotteryRound)
    assert rnd.balance == value
    assert ledger.balance_of(round_addr) == value
    # value is forwarded, not kept by the factory
    assert ledger.balance_of(factory) == 0
    assert ledger.balance_of(owner) == START_BALANCE - value
    assert rnd.state is RoundState.STARTED
    assert rnd.factory == factory


def test_creation_records(ledger, factory, owner, pair):
    receipt = _create(ledger, factory, owner, pair)
    round_addr = receipt.return_value
    block = receipt.block_number

    created = ledger.get_records(name=RECORD_ROUND_CREATED)
    started = ledger.get_records(name=RECORD_ROUND_STARTED)
    assert len(created) == 1 and len(started) == 1

    c, s = created[0], started[0]
    assert c.emitter == factory
    assert c.as_dict() == {"version": "0.1.2", "newRound": round_addr}
    assert s.emitter == round_addr
    assert s["saltHash"] == pair.salt_hash
    assert s["saltNHash"] == pair.salt_n_hash
    assert s["closingBlock"] == block + ROUND_LENGTH
    assert s["version"] == "0.1.2"
    assert s["picks"] == b""

    # both in the creating call's block; the round's record comes first
    assert c.block_number == s.block_number == block
    assert c.tx_index == s.tx_index == receipt.tx_index
    assert s.log_index < c.log_index
    assert list(receipt.records) == [s, c]


def test_unauthorized_creation_has_no_effect(ledger, factory, owner, other, pair):
    height = ledger.height
    before = ledger.get_records()

    with pytest.raises(Unauthorized) as ei:
        _create(ledger, factory, other, pair, value=10 * ETHER)

    assert ei.value.code == "UNAUTHORIZED"
    assert ei.value.data["caller"] == "0x" + other.hex()
    assert ledger.get_records() == before
    assert ledger.contract_at(factory).round_count == 0
    assert ledger.balance_of(other) == START_BALANCE
    assert ledger.balance_of(factory) == 0
    assert ledger.height == height


def test_unfunded_non_owner_fails_on_value_before_owner_check(ledger, factory, other, pair):
    # Attached value moves before contract code runs, so the balance check wins.
    before = ledger.get_records()
    with pytest.raises(OutOfResources) as ei:
        _create(ledger, factory, other, pair, value=START_BALANCE + 1)
    assert ei.value.data == {"needed": START_BALANCE + 1, "available": START_BALANCE}
    assert ledger.get_records() == before
    assert ledger.contract_at(factory).round_count == 0
    assert ledger.balance_of(other) == START_BALANCE
    assert ledger.balance_of(factory) == 0


def test_round_list_grows_in_order(ledger, factory, owner, pair):
    addrs = [_create(ledger, factory, owner, pair).return_value for _ in range(3)]
    f = ledger.contract_at(factory)
    assert f.round_count == 3
    assert f.rounds() == addrs
    assert len(set(addrs)) == 3

    created = ledger.get_records(emitter=factory, name=RECORD_ROUND_CREATED)
    assert [r["newRound"] for r in created] == addrs


def test_insufficient_value_aborts_creation(ledger, factory, owner, pair):
    with pytest.raises(OutOfResources):
        _create(ledger, factory, owner, pair, value=START_BALANCE + 1)
    assert ledger.contract_at(factory).round_count == 0
    assert ledger.get_records(name=RECORD_ROUND_STARTED) == []
    assert ledger.balance_of(owner) == START_BALANCE


def test_bad_commitment_width_reverts(ledger, factory, owner, pair):
    with pytest.raises(ValueError):
        ledger.call(TxContext(owner), factory, "create_round", b"\x00" * 31, pair.salt_n_hash)
    assert ledger.contract_at(factory).round_count == 0


def test_unencodable_picks_revert(ledger, factory, owner, pair):
    with pytest.raises(TypeError):
        _create(ledger, factory, owner, pair, picks=object())
    assert ledger.get_records() == []


def test_ownership_is_fixed_to_deployer(ledger, owner, other, pair):
    # a factory deployed by `other` is owned by `other`, not `owner`
    r = ledger.deploy(TxContext(other), LotteryRoundFactory)
    f = r.contract_address
    assert ledger.contract_at(f).owner == other
    with pytest.raises(Unauthorized):
        _create(ledger, f, owner, pair)
    assert _create(ledger, f, other, pair).return_value
