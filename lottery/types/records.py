"""
lottery.types.records — commit-log record type and canonical field encoding.

A `Record` is what a contract appends to the commit log: an emitter address,
a record name, an ordered set of named fields, and its position in the chain
(block number, call index within the block, record index within the call).

Field values
------------
Values are restricted to a small JSON-representable vocabulary so records can
be persisted and re-read bit-for-bit. Each value is encoded as a type-tagged
object ``{"t": tag, "v": payload}``:

    tag  python type        payload
    ---  -----------------  ----------------------------------------
    b    bytes/bytearray    0x-prefixed lowercase hex
    z    bool               true/false
    i    int                integer (at most 256 bits of magnitude)
    s    str                text
    n    None               null
    l    list/tuple         list of encoded values
    m    dict (str keys)    list of {"k", "t", "v"} in insertion order

Tuples decode as lists. Anything else is rejected with TypeError at emit
time, which reverts the emitting call.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from lottery.utils.bytes import as_bytes, from_hex, to_address, to_hex

MAX_INT_BITS = 256
MAX_BYTES_LEN = 64 * 1024
MAX_DEPTH = 8

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,63}$")


def check_name(name: Any, *, what: str = "record name") -> str:
    if not isinstance(name, str) or not _NAME_RE.match(name):
        raise ValueError(f"invalid {what}: {name!r}")
    return name


def encode_value(value: Any, _depth: int = 0) -> Dict[str, Any]:
    """Encode one field value into its tagged form; raises TypeError/ValueError."""
    if _depth > MAX_DEPTH:
        raise ValueError("record value nested too deeply")
    if isinstance(value, (bytes, bytearray, memoryview)):
        b = as_bytes(value)
        if len(b) > MAX_BYTES_LEN:
            raise ValueError(f"record bytes value too long ({len(b)} bytes)")
        return {"t": "b", "v": to_hex(b)}
    # bool is a subclass of int, so check it before int.
    if isinstance(value, bool):
        return {"t": "z", "v": value}
    if isinstance(value, int):
        if value.bit_length() > MAX_INT_BITS:
            raise ValueError("record int value out of range")
        return {"t": "i", "v": int(value)}
    if isinstance(value, str):
        return {"t": "s", "v": value}
    if value is None:
        return {"t": "n", "v": None}
    if isinstance(value, (list, tuple)):
        return {"t": "l", "v": [encode_value(x, _depth + 1) for x in value]}
    if isinstance(value, Mapping):
        items: List[Dict[str, Any]] = []
        for k, v in value.items():
            enc = encode_value(v, _depth + 1)
            items.append({"k": check_name(k, what="record key"), **enc})
        return {"t": "m", "v": items}
    raise TypeError(f"unsupported record value type: {type(value).__name__}")


def decode_value(obj: Mapping[str, Any]) -> Any:
    """Inverse of `encode_value`."""
    t, v = obj["t"], obj["v"]
    if t == "b":
        return from_hex(v)
    if t == "z":
        return bool(v)
    if t == "i":
        return int(v)
    if t == "s":
        return str(v)
    if t == "n":
        return None
    if t == "l":
        return [decode_value(x) for x in v]
    if t == "m":
        return {item["k"]: decode_value(item) for item in v}
    raise ValueError(f"unknown record value tag: {t!r}")


def _freeze(value: Any) -> Any:
    # Normalize to the decoded shape so in-memory and re-read records compare equal.
    return decode_value(encode_value(value))


@dataclass(frozen=True)
class Record:
    """
    One commit-log entry. Immutable once appended.

    `fields` keeps emission order; use `record["name"]` or `as_dict()` to read.
    """

    emitter: bytes
    name: str
    fields: Tuple[Tuple[str, Any], ...]
    block_number: int
    tx_index: int
    log_index: int

    @classmethod
    def build(
        cls,
        *,
        emitter: bytes,
        name: str,
        fields: Mapping[str, Any],
        block_number: int,
        tx_index: int,
        log_index: int,
    ) -> "Record":
        """Validate and normalize fields; raises TypeError/ValueError on bad input."""
        check_name(name)
        frozen = tuple(
            (check_name(k, what="record key"), _freeze(v)) for k, v in fields.items()
        )
        return cls(
            emitter=to_address(emitter, name="emitter"),
            name=name,
            fields=frozen,
            block_number=int(block_number),
            tx_index=int(tx_index),
            log_index=int(log_index),
        )

    @property
    def position(self) -> Tuple[int, int, int]:
        return (self.block_number, self.tx_index, self.log_index)

    def __getitem__(self, key: str) -> Any:
        for k, v in self.fields:
            if k == key:
                return v
        raise KeyError(key)

    def keys(self) -> Iterator[str]:
        return (k for k, _ in self.fields)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.fields)

    # ------------------------- (de)serialization -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emitter": to_hex(self.emitter),
            "name": self.name,
            "fields": [{"k": k, **encode_value(v)} for k, v in self.fields],
            "blockNumber": self.block_number,
            "txIndex": self.tx_index,
            "logIndex": self.log_index,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Record":
        return cls(
            emitter=to_address(d["emitter"], name="emitter"),
            name=check_name(d["name"]),
            fields=tuple((item["k"], decode_value(item)) for item in d["fields"]),
            block_number=int(d["blockNumber"]),
            tx_index=int(d["txIndex"]),
            log_index=int(d["logIndex"]),
        )


__all__ = [
    "MAX_INT_BITS",
    "MAX_BYTES_LEN",
    "check_name",
    "encode_value",
    "decode_value",
    "Record",
]
