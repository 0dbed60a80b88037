"""Exceptions raised by the skip list.

`OutOfRangeError` also derives from the builtin `IndexError` so that code
written against ordinary Python sequences keeps working unchanged.
"""
from __future__ import annotations

__all__ = ["SkipListError", "OutOfRangeError", "SnapshotError"]


class SkipListError(Exception):
    """Base class for every error raised by pyskip."""


class OutOfRangeError(SkipListError, IndexError):
    def __init__(self, index: int, size: int, *, op: str = "get"):
        super().__init__(f"{op}: index {index} out of range for size {size}")
        self.index = index
        self.size = size
        self.op = op

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} op={self.op} index={self.index} size={self.size}>"


class SnapshotError(SkipListError, ValueError):
    """Raised when a snapshot blob cannot be decoded into a skip list."""
