"""PySkip: an indexable skip list for Python.

This package exposes `pyskip.IndexableSkipList`, a sequence container with
expected logarithmic positional access and insertion, while keeping its
random-bit source pluggable so that list shapes can be reproduced in tests
and benchmarks.
"""

from __future__ import annotations

__all__ = [
    "IndexableSkipList",
    "CoinSource",
    "RandomCoin",
    "ScriptedCoin",
    "SkipListError",
    "OutOfRangeError",
    "SnapshotError",
]

from .coin import CoinSource, RandomCoin, ScriptedCoin
from .errors import OutOfRangeError, SkipListError, SnapshotError
from .skiplist import IndexableSkipList
