"""
lottery.state.commit_log — append-only, block-indexed record store.

Contracts publish records (RoundCreated, RoundStarted, ...) here; observers
read them back with range queries. Three backends share one interface:

- InMemoryCommitLog: keeps all records in RAM; default for tests and the CLI.
- JsonlCommitLog: append-only JSONL file; durable and re-readable.
- NullCommitLog: drops everything.

Ordering
--------
Records are keyed by (block_number, tx_index, log_index), which strictly
increases across appends. The ledger computes positions and only appends a
call's records after that call commits; a position that does not advance is
rejected with ValueError. `check_order` runs the same test on a batch without
appending, so the ledger can reject a call before committing its state.

Queries
-------
`get_records(emitter=, name=, from_block=, to_block=, limit=)` returns records
in ascending position order. Block bounds are inclusive.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import (Iterable, Iterator, List, Optional, Protocol, Tuple,
                    runtime_checkable)

from lottery.config import LotteryConfig
from lottery.types.records import Record
from lottery.utils.bytes import AddressLike, to_address

Position = Tuple[int, int, int]


# =============================================================================
# Interface
# =============================================================================


@runtime_checkable
class CommitLog(Protocol):
    def append(self, record: Record) -> Record:
        """Append one record. Its position must exceed the last appended one."""

    def get_records(
        self,
        *,
        emitter: Optional[AddressLike] = None,
        name: Optional[str] = None,
        from_block: Optional[int] = None,
        to_block: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """Matching records in ascending (block, tx, log) order."""

    def check_order(self, records: Iterable[Record]) -> None:
        """Raise ValueError unless `records` would extend the log in order."""

    @property
    def last_position(self) -> Optional[Position]:
        """Position of the newest record, or None for an empty log."""

    def flush(self) -> None:
        """Force persistence, if applicable."""

    def close(self) -> None:
        """Release resources (files, buffers)."""


# =============================================================================
# Common filter logic
# =============================================================================


def _record_matches(
    rec: Record,
    emitter: Optional[bytes],
    name: Optional[str],
    from_block: Optional[int],
    to_block: Optional[int],
) -> bool:
    if from_block is not None and rec.block_number < from_block:
        return False
    if to_block is not None and rec.block_number > to_block:
        return False
    if emitter is not None and rec.emitter != emitter:
        return False
    if name is not None and rec.name != name:
        return False
    return True


def _select(
    records: Iterable[Record],
    emitter: Optional[AddressLike],
    name: Optional[str],
    from_block: Optional[int],
    to_block: Optional[int],
    limit: Optional[int],
) -> List[Record]:
    if limit is not None and limit < 0:
        raise ValueError("limit must be >= 0")
    em = None if emitter is None else to_address(emitter, name="emitter")
    out: List[Record] = []
    if limit == 0:
        return out
    for rec in records:
        if _record_matches(rec, em, name, from_block, to_block):
            out.append(rec)
            if limit is not None and len(out) >= limit:
                break
    return out


class _Ordered:
    """Tracks the last appended position."""

    def __init__(self) -> None:
        self._last: Optional[Position] = None

    def check_order(self, records: Iterable[Record]) -> None:
        last = self._last
        for rec in records:
            pos = rec.position
            if last is not None and pos <= last:
                raise ValueError(
                    f"commit log position must increase: {pos} after {last}"
                )
            last = pos

    def _advance(self, rec: Record) -> None:
        self.check_order((rec,))
        self._last = rec.position

    @property
    def last_position(self) -> Optional[Position]:
        return self._last


# =============================================================================
# In-memory
# =============================================================================


class InMemoryCommitLog(_Ordered):
    """Thread-safe in-memory log. Keeps all records in RAM."""

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.RLock()
        self._records: List[Record] = []

    def append(self, record: Record) -> Record:
        with self._lock:
            self._advance(record)
            self._records.append(record)
        return record

    def get_records(
        self,
        *,
        emitter: Optional[AddressLike] = None,
        name: Optional[str] = None,
        from_block: Optional[int] = None,
        to_block: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        with self._lock:
            return _select(list(self._records), emitter, name, from_block, to_block, limit)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> None:
        return

    def close(self) -> None:
        with self._lock:
            self._records.clear()


# =============================================================================
# JSONL (durable)
# =============================================================================


class JsonlCommitLog(_Ordered):
    """
    Append-only JSONL log. Each line is one `Record.to_dict()`.

    Re-opening an existing file resumes after its last record, so a ledger
    restarted on the same path keeps positions strictly increasing.
    """

    def __init__(self, path: str) -> None:
        super().__init__()
        self._path = path
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        self._fh = open(path, "a+", encoding="utf-8", buffering=1)  # line-buffered
        self._lock = threading.RLock()
        self._log = logging.getLogger(__name__)
        for rec in self._scan():
            self._last = rec.position

    @property
    def path(self) -> str:
        return self._path

    @staticmethod
    def _encode(rec: Record) -> str:
        return json.dumps(rec.to_dict(), separators=(",", ":"))

    def _scan(self) -> Iterator[Record]:
        self._fh.flush()
        self._fh.seek(0)
        for lineno, line in enumerate(self._fh, start=1):
            if not line.strip():
                continue
            try:
                yield Record.from_dict(json.loads(line))
            except (ValueError, KeyError, TypeError) as e:
                self._log.warning(
                    "skipping malformed commit-log line",
                    extra={"path": self._path, "line": lineno, "err": repr(e)},
                )

    def append(self, record: Record) -> Record:
        line = self._encode(record)
        with self._lock:
            self._advance(record)
            self._fh.write(line + "\n")
        return record

    def get_records(
        self,
        *,
        emitter: Optional[AddressLike] = None,
        name: Optional[str] = None,
        from_block: Optional[int] = None,
        to_block: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        with self._lock:
            return _select(self._scan(), emitter, name, from_block, to_block, limit)

    def flush(self) -> None:
        with self._lock:
            self._fh.flush()
            os.fsync(self._fh.fileno())

    def close(self) -> None:
        with self._lock:
            if not self._fh.closed:
                self._fh.flush()
                self._fh.close()


# =============================================================================
# Null
# =============================================================================


class NullCommitLog(_Ordered):
    """A log that keeps nothing but still enforces ordering on appends."""

    def append(self, record: Record) -> Record:
        self._advance(record)
        return record

    def get_records(
        self,
        *,
        emitter: Optional[AddressLike] = None,
        name: Optional[str] = None,
        from_block: Optional[int] = None,
        to_block: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        return []

    def flush(self) -> None:
        return

    def close(self) -> None:
        return


def open_commit_log(config: LotteryConfig) -> CommitLog:
    """Build the backend named by `config.commit_log`."""
    kind = config.commit_log
    if kind == "memory":
        return InMemoryCommitLog()
    if kind == "jsonl":
        if not config.commit_log_path:
            raise ValueError("commit_log_path is required when commit_log is 'jsonl'")
        return JsonlCommitLog(config.commit_log_path)
    if kind == "null":
        return NullCommitLog()
    raise ValueError(f"unknown commit_log backend: {kind!r}")


__all__ = [
    "CommitLog",
    "InMemoryCommitLog",
    "JsonlCommitLog",
    "NullCommitLog",
    "open_commit_log",
]
