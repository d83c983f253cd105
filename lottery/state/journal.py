"""
lottery.state.journal — journaled writes with nested checkpoints.

The ledger wraps every call in a checkpoint: writes land in the top overlay,
reads consult overlays from top to base, `commit()` merges the top overlay into
its parent (or the base state), and `revert()` discards it. Three kinds of
state are journaled together so a failed call leaves no trace in any of them:

- accounts:  address -> Account (copy-on-write)
- storage:   (address, key) -> bytes (empty value deletes)
- contracts: address -> contract instance (the code registry)

Intended usage
--------------
    j = Journal()
    j.begin()
    j.ensure_account_for_write(addr).credit(10)
    j.storage_set(addr, b"k", b"v")
    j.commit()            # or j.revert()

Deterministic; no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .accounts import Account


def _b(x: bytes | bytearray | memoryview, *, name: str) -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like")
    return bytes(x)


@dataclass
class _Overlay:
    """
    A single journal layer.

    `storage` values of None are deletion markers.
    """

    accounts: Dict[bytes, Account] = field(default_factory=dict)
    storage: Dict[bytes, Dict[bytes, Optional[bytes]]] = field(default_factory=dict)
    contracts: Dict[bytes, Any] = field(default_factory=dict)

    def storage_get_local(self, addr: bytes, key: bytes) -> Tuple[bool, Optional[bytes]]:
        m = self.storage.get(addr)
        if m is None or key not in m:
            return False, None
        return True, m[key]

    def storage_set_local(self, addr: bytes, key: bytes, value: Optional[bytes]) -> None:
        self.storage.setdefault(addr, {})[key] = value


class Journal:
    """
    A copy-on-write write journal with nested checkpoints.

    API highlights
    --------------
    - begin() / commit() / revert() / depth()
    - get_account(), get_account_for_write(), ensure_account_for_write(), create_account()
    - storage_get(), storage_set(), storage_items()
    - get_contract(), register_contract()
    """

    def __init__(self) -> None:
        self._base_accounts: Dict[bytes, Account] = {}
        self._base_storage: Dict[bytes, Dict[bytes, bytes]] = {}
        self._base_contracts: Dict[bytes, Any] = {}
        self._layers: List[_Overlay] = []

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of open checkpoints (0 when idle)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> None:
        """Merge the top overlay into its parent, or into the base state."""
        if not self._layers:
            raise RuntimeError("commit without an open checkpoint")
        top = self._layers.pop()
        if self._layers:
            self._merge_layers(self._layers[-1], top)
        else:
            self._apply_to_base(top)

    def revert(self) -> None:
        """Discard the top overlay."""
        if not self._layers:
            raise RuntimeError("revert without an open checkpoint")
        self._layers.pop()

    @staticmethod
    def _merge_layers(parent: _Overlay, child: _Overlay) -> None:
        parent.accounts.update(child.accounts)
        for addr, m in child.storage.items():
            parent.storage.setdefault(addr, {}).update(m)
        parent.contracts.update(child.contracts)

    def _apply_to_base(self, layer: _Overlay) -> None:
        self._base_accounts.update(layer.accounts)
        for addr, m in layer.storage.items():
            base = self._base_storage.setdefault(addr, {})
            for k, v in m.items():
                if v is None:
                    base.pop(k, None)
                else:
                    base[k] = v
            if not base:
                self._base_storage.pop(addr, None)
        self._base_contracts.update(layer.contracts)

    # --------------------------------------------------------------------- #
    # Accounts
    # --------------------------------------------------------------------- #

    def _require_layer(self) -> _Overlay:
        if not self._layers:
            raise RuntimeError("write outside of a checkpoint")
        return self._layers[-1]

    def get_account(self, address: bytes) -> Optional[Account]:
        """Readonly lookup (do not mutate the result)."""
        addr = _b(address, name="address")
        for layer in reversed(self._layers):
            acc = layer.accounts.get(addr)
            if acc is not None:
                return acc
        return self._base_accounts.get(addr)

    def get_account_for_write(self, address: bytes) -> Optional[Account]:
        """Promote a copy of an existing account into the top layer; None if absent."""
        addr = _b(address, name="address")
        top = self._require_layer()
        if addr in top.accounts:
            return top.accounts[addr]
        acc = self.get_account(addr)
        if acc is None:
            return None
        copy = acc.copy()
        top.accounts[addr] = copy
        return copy

    def ensure_account_for_write(self, address: bytes) -> Account:
        """Like get_account_for_write, creating a zeroed account if absent."""
        acc = self.get_account_for_write(address)
        if acc is not None:
            return acc
        return self.create_account(address)

    def create_account(self, address: bytes, *, initial_balance: int = 0) -> Account:
        """Create a new account in the top overlay; ValueError if one is visible."""
        addr = _b(address, name="address")
        if self.get_account(addr) is not None:
            raise ValueError(f"account already exists: 0x{addr.hex()}")
        acc = Account(nonce=0, balance=initial_balance)
        self._require_layer().accounts[addr] = acc
        return acc

    def balance_of(self, address: bytes) -> int:
        acc = self.get_account(address)
        return 0 if acc is None else acc.balance

    # --------------------------------------------------------------------- #
    # Storage
    # --------------------------------------------------------------------- #

    def storage_get(self, address: bytes, key: bytes, default: bytes = b"") -> bytes:
        addr = _b(address, name="address")
        key_b = _b(key, name="key")
        for layer in reversed(self._layers):
            found, value = layer.storage_get_local(addr, key_b)
            if found:
                return default if value is None else value
        return self._base_storage.get(addr, {}).get(key_b, default)

    def storage_set(self, address: bytes, key: bytes, value: bytes) -> None:
        """Stage a storage write in the top overlay. Empty value is a deletion."""
        addr = _b(address, name="address")
        key_b = _b(key, name="key")
        val_b = _b(value, name="value")
        self._require_layer().storage_set_local(addr, key_b, val_b or None)

    def storage_items(self, address: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """Visible (key, value) pairs for an address, sorted by key."""
        addr = _b(address, name="address")
        merged: Dict[bytes, Optional[bytes]] = dict(self._base_storage.get(addr, {}))
        for layer in self._layers:
            merged.update(layer.storage.get(addr, {}))
        for k in sorted(merged):
            v = merged[k]
            if v is not None:
                yield k, v

    # --------------------------------------------------------------------- #
    # Contracts
    # --------------------------------------------------------------------- #

    def get_contract(self, address: bytes) -> Optional[Any]:
        addr = _b(address, name="address")
        for layer in reversed(self._layers):
            if addr in layer.contracts:
                return layer.contracts[addr]
        return self._base_contracts.get(addr)

    def register_contract(self, address: bytes, instance: Any) -> None:
        addr = _b(address, name="address")
        if self.get_contract(addr) is not None:
            raise ValueError(f"contract already registered at 0x{addr.hex()}")
        self._require_layer().contracts[addr] = instance


__all__ = ["Journal"]
