"""
Lottery rounds on a deterministic, block-height driven ledger.

This package provides:
- the commit–reveal primitive (iterated hash chain + binding commitment),
- a journaled host ledger with an append-only, block-indexed commit log,
- the LotteryRoundFactory / LotteryRound contracts driven by that ledger.

Only light, stable exports are surfaced here to avoid import cycles.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
