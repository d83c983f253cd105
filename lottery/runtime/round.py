"""
lottery.runtime.round — one lottery round.

A round is created by its factory in a single atomic step:

  1. the two commitments, `picks` and the factory's version are fixed;
  2. `creation_block` is the current block and
     `closing_block = creation_block + round_length`;
  3. the lifecycle moves CREATED → STARTED;
  4. one `RoundStarted` record is appended at `creation_block`.

CREATED only exists inside the deploying call and is never observable from
outside. The round's balance is whatever value was attached at creation;
there is no deposit path. Reveal, draw and payout are handled elsewhere and
will gate themselves on `require_state`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet

from lottery.constants import DIGEST_LEN, RECORD_ROUND_STARTED
from lottery.errors import InvalidTransition
from lottery.types.records import decode_value, encode_value
from lottery.utils.bytes import ensure_len

from .contract import CallContext, Contract

STATE_KEY = b"round:state"


class RoundState(str, Enum):
    CREATED = "created"
    STARTED = "started"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


_TRANSITIONS: Dict[RoundState, FrozenSet[RoundState]] = {
    RoundState.CREATED: frozenset({RoundState.STARTED}),
    RoundState.STARTED: frozenset(),
}


def check_transition(current: RoundState, new: RoundState) -> None:
    """Raise InvalidTransition unless `current → new` is in the transition table."""
    if new not in _TRANSITIONS.get(current, frozenset()):
        raise InvalidTransition(
            f"cannot move round from {current.value} to {new.value}",
            current=current.value,
            requested=new.value,
        )


class LotteryRound(Contract):
    """
    Immutable after construction:
        salt_hash, salt_n_hash, picks, version, factory,
        creation_block, closing_block

    Journaled:
        state (RoundState)
    """

    def constructor(
        self,
        ctx: CallContext,
        salt_hash: bytes,
        salt_n_hash: bytes,
        picks: Any,
        version: str,
    ) -> None:
        self._salt_hash = ensure_len(salt_hash, DIGEST_LEN, name="salt_hash")
        self._salt_n_hash = ensure_len(salt_n_hash, DIGEST_LEN, name="salt_n_hash")
        # Normalized copy; raises if picks cannot be recorded.
        self._picks = decode_value(encode_value(picks))
        if not isinstance(version, str) or not version:
            raise ValueError("version must be a non-empty string")
        self._version = version
        self._factory = ctx.caller
        self._creation_block = ctx.block_number
        self._closing_block = ctx.block_number + ctx.config.round_length

        ctx.sstore(STATE_KEY, RoundState.CREATED.value.encode())
        self._transition(ctx, RoundState.STARTED)

        ctx.emit(
            RECORD_ROUND_STARTED,
            saltHash=self._salt_hash,
            saltNHash=self._salt_n_hash,
            closingBlock=self._closing_block,
            version=self._version,
            picks=self._picks,
        )

    # ----- reads -------------------------------------------------------------

    @property
    def salt_hash(self) -> bytes:
        return self._salt_hash

    @property
    def salt_n_hash(self) -> bytes:
        return self._salt_n_hash

    @property
    def picks(self) -> Any:
        return self._picks

    @property
    def version(self) -> str:
        return self._version

    @property
    def factory(self) -> bytes:
        return self._factory

    @property
    def creation_block(self) -> int:
        return self._creation_block

    @property
    def closing_block(self) -> int:
        return self._closing_block

    @property
    def state(self) -> RoundState:
        return RoundState(self._sload(STATE_KEY).decode())

    def require_state(self, *allowed: RoundState, operation: str = "operation") -> RoundState:
        """Return the current state, or raise InvalidTransition if it is not in `allowed`."""
        current = self.state
        if current not in allowed:
            raise InvalidTransition(
                f"{operation} not allowed while round is {current.value}",
                current=current.value,
                requested=operation,
            )
        return current

    # ----- lifecycle ---------------------------------------------------------

    def _transition(self, ctx: CallContext, new: RoundState) -> None:
        check_transition(self.state, new)
        ctx.sstore(STATE_KEY, new.value.encode())


__all__ = ["RoundState", "check_transition", "LotteryRound", "STATE_KEY"]
