"""
lottery.state
-------------

Ledger state: accounts and balances, the checkpointing write journal, and the
append-only commit log that contracts publish records to.
"""

from __future__ import annotations

from .accounts import Account, transfer
from .commit_log import (CommitLog, InMemoryCommitLog, JsonlCommitLog,
                         NullCommitLog, open_commit_log)
from .journal import Journal

__all__ = [
    "Account",
    "transfer",
    "Journal",
    "CommitLog",
    "InMemoryCommitLog",
    "JsonlCommitLog",
    "NullCommitLog",
    "open_commit_log",
]
