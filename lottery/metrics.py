"""
Prometheus metrics for the lottery ledger.

Instruments:
  • calls_total          — ledger calls (deploy/call) per outcome
  • rounds_created_total — rounds successfully created by any factory
  • records_total        — commit-log records appended, per record name
  • chain_iterations     — requested hash-chain lengths when building commitments

Label vocabularies are kept small and finite. Record names are bounded by the
contracts shipped in this package.

Usage
-----
    from lottery.metrics import METRICS

    METRICS.record_call("success")
    METRICS.record_round_created()

Tests and embedded ledgers that need isolation construct their own `Metrics`
with a private `CollectorRegistry`.
"""

from __future__ import annotations

from typing import Iterable

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

_CALL_OUTCOMES = (
    "success",
    "unauthorized",
    "invalid_transition",
    "out_of_resources",
    "invalid_call",
    "error",
)

_ERROR_CODE_TO_OUTCOME = {
    "UNAUTHORIZED": "unauthorized",
    "INVALID_TRANSITION": "invalid_transition",
    "OUT_OF_RESOURCES": "out_of_resources",
    "INVALID_CALL": "invalid_call",
}

# Hash-chain lengths: 1 up to 16M iterations (log-ish spacing).
_CHAIN_BUCKETS = (
    1.0, 4.0, 16.0, 64.0,
    256.0, 1024.0, 4096.0, 16384.0,
    65536.0, 262144.0, 1048576.0, 16777216.0,
)


class Metrics:
    """
    Container for all lottery Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "lottery",
        subsystem: str = "ledger",
        registry: CollectorRegistry = REGISTRY,
        chain_buckets: Iterable[float] = _CHAIN_BUCKETS,
    ) -> None:
        self.calls_total = Counter(
            "calls_total",
            "Ledger calls processed, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.rounds_created_total = Counter(
            "rounds_created_total",
            "Lottery rounds created by factories.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.records_total = Counter(
            "records_total",
            "Records appended to the commit log, labeled by record name.",
            labelnames=("name",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.chain_iterations = Histogram(
            "chain_iterations",
            "Hash-chain lengths requested when building commitments.",
            buckets=tuple(chain_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    # ----- Recording helpers -------------------------------------------------

    def record_call(self, outcome: str) -> None:
        if outcome not in _CALL_OUTCOMES:
            outcome = "error"
        self.calls_total.labels(outcome=outcome).inc()

    def record_failure(self, code: str) -> None:
        """Count a reverted call by its error code."""
        self.record_call(_ERROR_CODE_TO_OUTCOME.get(code, "error"))

    def record_round_created(self) -> None:
        self.rounds_created_total.inc()

    def record_appended(self, name: str) -> None:
        self.records_total.labels(name=name).inc()

    def observe_chain(self, iterations: int) -> None:
        self.chain_iterations.observe(float(iterations))


# Singleton used by most components
METRICS = Metrics()

__all__ = [
    "Metrics",
    "METRICS",
    "_CALL_OUTCOMES",
]
