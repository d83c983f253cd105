"""
lottery.runtime.factory — owner-gated creator of lottery rounds.

The deployer becomes the immutable owner. Only the owner may create rounds;
anyone else gets Unauthorized and the call has no effect. A successful
`create_round`:

  - deploys a LotteryRound forwarding exactly the value attached to the call,
  - appends the new address to the factory's round list,
  - appends one `RoundCreated {version, newRound}` record,
  - returns the new round's address.

The round list only grows. It is kept in journaled storage so it reverts
together with the rest of a failed call.
"""

from __future__ import annotations

from typing import Any, List, Optional

from lottery.constants import RECORD_ROUND_CREATED

from .contract import CallContext, Contract, external
from .round import LotteryRound

ROUND_COUNT_KEY = b"rounds:count"
_ROUND_KEY_PREFIX = b"rounds:"


def _round_key(index: int) -> bytes:
    return _ROUND_KEY_PREFIX + index.to_bytes(8, "big")


class LotteryRoundFactory(Contract):
    def constructor(self, ctx: CallContext, version: Optional[str] = None) -> None:
        v = ctx.config.factory_version if version is None else version
        if not isinstance(v, str) or not v:
            raise ValueError("version must be a non-empty string")
        self._version = v
        self._init_owner(ctx, ctx.caller)

    @property
    def owner(self) -> bytes:
        return self._get_owner() or b""

    @property
    def version(self) -> str:
        return self._version

    @property
    def round_count(self) -> int:
        raw = self._sload(ROUND_COUNT_KEY)
        return int.from_bytes(raw, "big") if raw else 0

    def rounds(self) -> List[bytes]:
        """Created round addresses, oldest first."""
        return [self._sload(_round_key(i)) for i in range(self.round_count)]

    @external
    def create_round(
        self,
        ctx: CallContext,
        salt_hash: bytes,
        salt_n_hash: bytes,
        picks: Any = b"",
    ) -> bytes:
        self._require_owner(ctx)

        new_round = ctx.deploy(
            LotteryRound,
            salt_hash,
            salt_n_hash,
            picks,
            self._version,
            value=ctx.value,
        )

        n = self.round_count
        ctx.sstore(_round_key(n), new_round)
        ctx.sstore(ROUND_COUNT_KEY, (n + 1).to_bytes(8, "big"))

        ctx.emit(RECORD_ROUND_CREATED, version=self._version, newRound=new_round)
        return new_round


__all__ = ["LotteryRoundFactory", "ROUND_COUNT_KEY"]
