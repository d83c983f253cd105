"""
lottery.utils
-------------

Light helpers shared across the ledger and contracts: byte/hex handling,
address normalization and named hash primitives.

This package file avoids eager imports to keep dependency order simple.
"""

__all__: list[str] = []
