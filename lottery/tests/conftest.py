# -*- coding: utf-8 -*-
"""
lottery.tests.conftest
======================

Fixtures for ledger and contract tests:

- `config`   : LotteryConfig with in-memory commit log and automine on
- `ledger`   : fresh Ledger with isolated Prometheus metrics
- `owner` / `other` : funded externally-owned accounts with stable addresses
- `factory`  : a LotteryRoundFactory deployed by `owner`
- `pair`     : the commitment pair for secret = H("secret"), N = 12
"""
from __future__ import annotations

import os

import pytest
from prometheus_client import CollectorRegistry

from lottery.commit_reveal import build_commitment_pair, secret_from_text
from lottery.config import LotteryConfig
from lottery.metrics import Metrics
from lottery.runtime import Ledger, LotteryRoundFactory, address_from_label
from lottery.types import TxContext

os.environ.setdefault("PYTHONHASHSEED", "0")

ETHER = 10**18
START_BALANCE = 1_000 * ETHER


@pytest.fixture
def config() -> LotteryConfig:
    return LotteryConfig(commit_log="memory", automine=True, start_height=1)


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> Metrics:
    return Metrics(registry=registry)


@pytest.fixture
def ledger(config: LotteryConfig, metrics: Metrics) -> Ledger:
    return Ledger(config, metrics=metrics)


@pytest.fixture
def owner(ledger: Ledger) -> bytes:
    addr = address_from_label("owner")
    ledger.fund(addr, START_BALANCE)
    return addr


@pytest.fixture
def other(ledger: Ledger) -> bytes:
    addr = address_from_label("other")
    ledger.fund(addr, START_BALANCE)
    return addr


@pytest.fixture
def factory(ledger: Ledger, owner: bytes) -> bytes:
    receipt = ledger.deploy(TxContext(owner), LotteryRoundFactory)
    return receipt.contract_address


@pytest.fixture
def secret() -> bytes:
    return secret_from_text("secret")


@pytest.fixture
def pair(secret: bytes):
    return build_commitment_pair(secret, 12)
