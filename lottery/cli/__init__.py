"""
lottery.cli
-----------

Developer CLI for lottery rounds.

Usage:
  lottery commit --secret-text secret --n 12
  lottery verify --salt-hash 0x.. --salt-n-hash 0x.. --secret 0x.. --n 12
  lottery simulate --value 10000000000000000000 --picks 0x0102

`commit` and `verify` are pure computations. `simulate` spins up a local
ledger, deploys a factory, creates one round and prints the resulting
records as JSON.

Environment:
  LOTTERY_* : any LotteryConfig field (see lottery.config), e.g.
              LOTTERY_HASH_FN=sha3_256, LOTTERY_COMMIT_LOG=jsonl
"""

from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional

import typer

from lottery import logging as llog
from lottery.commit_reveal import (CommitmentPair, build_commitment_pair,
                                   secret_from_text, verify_commitments)
from lottery.config import LotteryConfig
from lottery.errors import LotteryError
from lottery.runtime import (Ledger, LotteryRoundFactory, address_from_label)
from lottery.types import TxContext
from lottery.utils.bytes import from_hex, to_hex
from lottery.version import __version__

app = typer.Typer(
    name="lottery",
    help="Commit–reveal lottery rounds on a local deterministic ledger.",
    no_args_is_help=True,
    add_completion=False,
)

_STATE: Dict[str, Any] = {}


def _load_config(path: Optional[str]) -> LotteryConfig:
    try:
        return LotteryConfig.from_file(path) if path else LotteryConfig.from_env()
    except (OSError, ValueError, TypeError) as e:
        raise typer.BadParameter(str(e), param_hint="--config") from e


def _echo_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2))


def _fail(err: LotteryError) -> None:
    _echo_json({"ok": False, "error": err.to_dict()})
    raise typer.Exit(code=1)


def _hex_arg(value: str, name: str) -> bytes:
    try:
        return from_hex(value)
    except (TypeError, ValueError) as e:
        raise typer.BadParameter(str(e), param_hint=name) from e


def _resolve_secret(secret: Optional[str], secret_text: Optional[str], hash_fn: str) -> bytes:
    if (secret is None) == (secret_text is None):
        raise typer.BadParameter("pass exactly one of --secret or --secret-text")
    if secret_text is not None:
        return secret_from_text(secret_text, hash_fn=hash_fn)
    return _hex_arg(secret, "--secret")


@app.callback()
def _main(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="JSON/YAML config file (default: LOTTERY_* env)."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Minimum log level (default: config log_level)."
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines."),
) -> None:
    cfg = _load_config(config)
    _STATE["config"] = cfg
    if log_level is None and not json_logs:
        llog.configure_from_config(cfg)
    else:
        llog.configure(
            json=json_logs or cfg.log_format == "json",
            level=log_level or cfg.log_level,
        )


@app.command("version")
def cmd_version() -> None:
    """Print the package version."""
    typer.echo(__version__)


@app.command("commit")
def cmd_commit(
    n: int = typer.Option(..., "--n", "-n", min=1, help="Hash-chain length N (>= 1)."),
    secret: Optional[str] = typer.Option(None, "--secret", "-s", help="0x-hex 32-byte secret."),
    secret_text: Optional[str] = typer.Option(
        None, "--secret-text", help="Derive the secret as H(text)."
    ),
) -> None:
    """Compute (saltHash, saltNHash) for a secret and chain length."""
    cfg: LotteryConfig = _STATE["config"]
    s = _resolve_secret(secret, secret_text, cfg.hash_fn)
    try:
        pair = build_commitment_pair(
            s, n, hash_fn=cfg.hash_fn, max_iterations=cfg.max_chain_iterations
        )
    except LotteryError as e:
        _fail(e)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    _echo_json({"hashFn": cfg.hash_fn, "n": n, **pair.to_dict()})


@app.command("verify")
def cmd_verify(
    salt_hash: str = typer.Option(..., "--salt-hash", help="Published saltHash (0x-hex)."),
    salt_n_hash: str = typer.Option(..., "--salt-n-hash", help="Published saltNHash (0x-hex)."),
    n: int = typer.Option(..., "--n", "-n", min=1, help="Claimed chain length N."),
    secret: Optional[str] = typer.Option(None, "--secret", "-s", help="0x-hex 32-byte secret."),
    secret_text: Optional[str] = typer.Option(
        None, "--secret-text", help="Derive the secret as H(text)."
    ),
) -> None:
    """Check a claimed opening (secret, N) against a published pair. Exit 1 on mismatch."""
    cfg: LotteryConfig = _STATE["config"]
    s = _resolve_secret(secret, secret_text, cfg.hash_fn)
    try:
        pair = CommitmentPair(
            salt_hash=_hex_arg(salt_hash, "--salt-hash"),
            salt_n_hash=_hex_arg(salt_n_hash, "--salt-n-hash"),
        )
        verify_commitments(
            pair, s, n, hash_fn=cfg.hash_fn, max_iterations=cfg.max_chain_iterations
        )
    except LotteryError as e:
        _fail(e)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    _echo_json({"ok": True})


@app.command("simulate")
def cmd_simulate(
    n: int = typer.Option(12, "--n", "-n", min=1, help="Hash-chain length N."),
    secret_text: str = typer.Option("secret", "--secret-text", help="Derive the secret as H(text)."),
    value: int = typer.Option(0, "--value", min=0, help="Value attached to create_round."),
    picks: str = typer.Option("0x", "--picks", help="Opaque picks payload (0x-hex)."),
    version: Optional[str] = typer.Option(None, "--version", help="Factory version string."),
) -> None:
    """Deploy a factory on a fresh local ledger, create one round, print its records."""
    cfg: LotteryConfig = _STATE["config"]
    picks_b = _hex_arg(picks, "--picks")
    pair = build_commitment_pair(
        secret_from_text(secret_text, hash_fn=cfg.hash_fn),
        n,
        hash_fn=cfg.hash_fn,
        max_iterations=cfg.max_chain_iterations,
    )

    ledger = Ledger(cfg)
    owner = address_from_label("owner")
    ledger.fund(owner, value)
    try:
        deployed = ledger.deploy(TxContext(owner), LotteryRoundFactory, version)
        factory_addr = deployed.contract_address
        receipt = ledger.call(
            TxContext(owner, value=value),
            factory_addr,
            "create_round",
            pair.salt_hash,
            pair.salt_n_hash,
            picks_b,
        )
    except LotteryError as e:
        _fail(e)
    finally:
        ledger.commit_log.close()

    rnd = ledger.contract_at(receipt.return_value)
    _echo_json(
        {
            "ok": True,
            "ledger": ledger.snapshot(),
            "factory": to_hex(factory_addr),
            "round": {
                "address": to_hex(rnd.address),
                "balance": rnd.balance,
                "creationBlock": rnd.creation_block,
                "closingBlock": rnd.closing_block,
                "state": rnd.state.value,
                "version": rnd.version,
            },
            "receipt": receipt.to_dict(),
        }
    )


def main() -> None:  # pragma: no cover
    try:
        app(prog_name="lottery")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    main()
