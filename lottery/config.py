"""
Lottery ledger configuration.

This file defines a typed configuration object and helpers for:
- Round timing (closing deadline in blocks)
- The commitment hash primitive and hash-chain guard-rails
- The local ledger's block clock (start height, automine)
- Where the commit log lives (memory, JSONL file, or dropped)
- Logging level/format for the CLI and embedded ledgers

It provides:
- Dataclass-based config with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML file
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

import yaml

from .constants import (
    DEFAULT_FACTORY_VERSION,
    DEFAULT_HASH_FN,
    DEFAULT_MAX_CHAIN_ITERATIONS,
    MAX_ITERATIONS_ENCODABLE,
    ROUND_LENGTH,
)

_HASH_FNS = {"keccak256", "sha3_256"}
_COMMIT_LOGS = {"memory", "jsonl", "null"}
_LOG_FORMATS = {"json", "text"}
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass
class LotteryConfig:
    """
    Round timing:
      - round_length: blocks between a round's creation and its closing block
      - factory_version: version string factories stamp into their records

    Commitments:
      - hash_fn: "keccak256" (default) or "sha3_256"
      - max_chain_iterations: refuse to compute longer hash chains locally

    Ledger clock:
      - start_height: block height of the first block
      - automine: advance one block after every successful call

    Commit log:
      - commit_log: "memory" | "jsonl" | "null"
      - commit_log_path: JSONL path when commit_log == "jsonl"

    Logging:
      - log_level / log_format ("json" | "text")
    """

    round_length: int = ROUND_LENGTH
    factory_version: str = DEFAULT_FACTORY_VERSION

    hash_fn: str = DEFAULT_HASH_FN
    max_chain_iterations: int = DEFAULT_MAX_CHAIN_ITERATIONS

    start_height: int = 1
    automine: bool = True

    commit_log: str = "memory"
    commit_log_path: Optional[str] = None

    log_level: str = "WARNING"
    log_format: str = "text"

    def validate(self) -> None:
        if self.round_length <= 0:
            raise ValueError("round_length must be > 0")
        if not self.factory_version:
            raise ValueError("factory_version must be non-empty")
        if self.hash_fn not in _HASH_FNS:
            raise ValueError(f"Unsupported hash_fn: {self.hash_fn}")
        if not (1 <= self.max_chain_iterations <= MAX_ITERATIONS_ENCODABLE):
            raise ValueError("max_chain_iterations must be in [1, 2^64-1]")
        if self.start_height < 0:
            raise ValueError("start_height must be >= 0")
        if self.commit_log not in _COMMIT_LOGS:
            raise ValueError(
                f"commit_log must be one of {sorted(_COMMIT_LOGS)}, got {self.commit_log!r}"
            )
        if self.commit_log == "jsonl" and not self.commit_log_path:
            raise ValueError("commit_log_path is required when commit_log is 'jsonl'")
        if self.log_format not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {sorted(_LOG_FORMATS)}")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log_level: {self.log_level}")

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "LOTTERY_") -> "LotteryConfig":
        """
        Load configuration from environment variables. All variables are optional.

        Supported keys (examples):
          - LOTTERY_ROUND_LENGTH=43200
          - LOTTERY_FACTORY_VERSION=0.1.2
          - LOTTERY_HASH_FN=keccak256
          - LOTTERY_MAX_CHAIN_ITERATIONS=16777216
          - LOTTERY_START_HEIGHT=1
          - LOTTERY_AUTOMINE=true
          - LOTTERY_COMMIT_LOG=jsonl
          - LOTTERY_COMMIT_LOG_PATH=./data/commit_log.jsonl
          - LOTTERY_LOG_LEVEL=DEBUG
          - LOTTERY_LOG_FORMAT=json
        """

        def _get(name: str, cast: Any, default: Any) -> Any:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None:
                return default
            try:
                if cast is bool:
                    return raw.lower() in {"1", "true", "yes", "on"}
                return cast(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e

        d = LotteryConfig()
        cfg = LotteryConfig(
            round_length=_get("ROUND_LENGTH", int, d.round_length),
            factory_version=_get("FACTORY_VERSION", str, d.factory_version),
            hash_fn=_get("HASH_FN", str, d.hash_fn),
            max_chain_iterations=_get("MAX_CHAIN_ITERATIONS", int, d.max_chain_iterations),
            start_height=_get("START_HEIGHT", int, d.start_height),
            automine=_get("AUTOMINE", bool, d.automine),
            commit_log=_get("COMMIT_LOG", str, d.commit_log),
            commit_log_path=_get("COMMIT_LOG_PATH", str, d.commit_log_path),
            log_level=_get("LOG_LEVEL", str, d.log_level),
            log_format=_get("LOG_FORMAT", str, d.log_format),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "LotteryConfig":
        """
        Load configuration from a JSON or YAML file. Keys mirror the dataclass
        fields; unknown keys are rejected. Example (YAML):

            round_length: 43200
            factory_version: "0.1.2"
            hash_fn: keccak256
            commit_log: jsonl
            commit_log_path: ./data/commit_log.jsonl
        """
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        data = _parse_json_or_yaml(text, path)
        if not isinstance(data, dict):
            raise ValueError(f"{path!r}: top-level config must be a mapping")

        known = {f.name for f in fields(LotteryConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"{path!r}: unknown config keys {unknown}")

        cfg = LotteryConfig(**data)
        cfg.validate()
        return cfg


# -------------------------
# Utilities
# -------------------------


def _parse_json_or_yaml(text: str, path_hint: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ValueError(
            f"Failed to parse {path_hint!r} as JSON or YAML: {e}"
        ) from e


DEFAULT: LotteryConfig = LotteryConfig()


__all__ = [
    "LotteryConfig",
    "DEFAULT",
]
