"""Indexable skip list: a sequence addressed by *position*, not by key.

Every level is a doubly linked chain between a head and a tail sentinel.
Each node records the *span* of the edge entering it from its left
neighbour, i.e. how many base-level positions that edge jumps over. Summing
spans while walking right therefore yields a node's rank, which is what lets
lookups and insertions descend the levels by index instead of by comparison.

Nodes live in an arena (a plain list) and refer to each other by integer id,
so the up/down/left/right graph has no reference cycles and can be dumped
as-is (see `pyskip.snapshot`).

Complexities (expected):
    • get     – O(log n)
    • add     – O(log n)
    • pop     – O(log n)
    • iterate – O(n)

Level promotion flips a fair coin after every insertion; a new top level is
grown whenever a copy climbs above the current height.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Generic, Optional, TypeVar

from .coin import CoinSource, RandomCoin
from .errors import OutOfRangeError

__all__ = ["IndexableSkipList"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _require_int(index: object) -> None:
    if not isinstance(index, int):
        raise TypeError(f"indices must be integers, not {type(index).__name__}")


class _Node(Generic[T]):
    __slots__ = ("data", "span", "left", "right", "up", "down")

    def __init__(self, data: Optional[T] = None, span: int = 1):
        self.data = data
        self.span = span
        self.left: Optional[int] = None
        self.right: Optional[int] = None
        self.up: Optional[int] = None
        self.down: Optional[int] = None

    def __repr__(self) -> str:  # pragma: no cover
        return f"Node<{self.data!r}/{self.span}>"


class IndexableSkipList(Generic[T]):
    """Positional sequence with expected O(log n) `get`/`add`.

    Parameters
    ----------
    items: Iterable
        Initial contents, appended in order.
    coin: CoinSource | None
        Random-bit source deciding promotions. Defaults to a fresh
        `RandomCoin`; pass a seeded or scripted one for reproducible shapes.
    max_height: int | None
        Upper bound on the number of levels. ``None`` means unbounded.
    """

    def __init__(
        self,
        items: Iterable[T] = (),
        *,
        coin: Optional[CoinSource] = None,
        max_height: Optional[int] = None,
    ):
        if max_height is not None and max_height < 1:
            raise ValueError(f"max_height must be >= 1, got {max_height}")
        self._coin: CoinSource = coin if coin is not None else RandomCoin()
        self._max_height = max_height
        self._reset()
        self.extend(items)

    # ------------------------------------------------------------------
    # Arena helpers
    # ------------------------------------------------------------------
    def _reset(self) -> None:
        self._nodes: list[Optional[_Node[T]]] = []
        self._free: list[int] = []
        self._head = self._alloc()
        self._tail = self._alloc()
        self._link(self._head, self._tail)
        self._base = self._head  # base-level head never changes
        self._size = 0
        self._height = 1

    def _alloc(self, data: Optional[T] = None, span: int = 1) -> int:
        node: _Node[T] = _Node(data, span)
        if self._free:
            nid = self._free.pop()
            self._nodes[nid] = node
        else:
            nid = len(self._nodes)
            self._nodes.append(node)
        return nid

    def _release(self, nid: int) -> None:
        self._nodes[nid] = None
        self._free.append(nid)

    def _n(self, nid: Optional[int]) -> _Node[T]:
        assert nid is not None, "followed a missing link"
        node = self._nodes[nid]
        assert node is not None, f"dangling node id {nid}"
        return node

    def _link(self, left: Optional[int], right: Optional[int]) -> None:
        self._n(left).right = right
        self._n(right).left = left

    def _insert_after(self, left: int, nid: int) -> None:
        self._link(nid, self._n(left).right)
        self._link(left, nid)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def _descend(self, target: int) -> int:
        """Return the base node whose rank is the largest not above `target`.

        Rank 0 is the base head sentinel.
        """
        distance = 0
        p = self._head
        while True:
            node = self._n(p)
            step = self._n(node.right).span
            if distance + step <= target:
                p = node.right  # type: ignore[assignment]
                distance += step
            elif node.down is not None:
                p = node.down
            else:
                return p

    def _adjust_spans_above(self, nid: int, level: int, delta: int) -> None:
        """Add `delta` to the edge covering `nid` on every level above `level`."""
        p = nid
        while level < self._height:
            node = self._n(p)
            if node.up is not None:
                p = node.up
                self._n(self._n(p).right).span += delta
                level += 1
            else:
                p = node.left  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Promotion 🪙
    # ------------------------------------------------------------------
    def _promote(self, index: int, nid: int) -> None:
        data = self._n(nid).data
        top, level = nid, 1
        while (self._max_height is None or level < self._max_height) and self._coin.flip():
            level += 1
            copy = self._alloc(data)
            if level > self._height:
                self._add_layer(index)
                self._n(copy).span = self._size + 1 - self._n(self._tail).span
                self._insert_after(self._head, copy)
            else:
                self._splice(top, copy)
            self._n(copy).down = top
            self._n(top).up = copy
            top = copy

    def _splice(self, below: int, copy: int) -> None:
        """Link `copy` into the existing level directly above `below`."""
        p = below
        jumped = 0
        while self._n(p).up is None:
            jumped += self._n(p).span
            p = self._n(p).left  # type: ignore[assignment]
        upper = self._n(p).up
        assert upper is not None
        # the upper edge that used to cover `below` is now split in two
        self._n(copy).span = jumped
        self._n(self._n(upper).right).span -= jumped
        self._insert_after(upper, copy)

    def _add_layer(self, index: int) -> None:
        head = self._alloc()
        tail = self._alloc(span=self._size - index)
        self._link(head, tail)
        self._n(self._head).up = head
        self._n(head).down = self._head
        self._n(self._tail).up = tail
        self._n(tail).down = self._tail
        self._head, self._tail = head, tail
        self._height += 1
        logger.debug("grew skip list to height %d (size=%d)", self._height, self._size)

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------
    def size(self) -> int:
        return self._size

    @property
    def height(self) -> int:
        return self._height

    def get(self, index: int) -> T:
        """Return the element at 0-based `index`."""
        _require_int(index)
        if index < 0 or index >= self._size:
            raise OutOfRangeError(index, self._size, op="get")
        return self._n(self._descend(index + 1)).data  # type: ignore[return-value]

    def add(self, index: int, element: T) -> None:
        """Insert `element` so that it ends up at position `index`."""
        _require_int(index)
        if index < 0 or index > self._size:
            raise OutOfRangeError(index, self._size, op="add")
        nid = self._alloc(element)
        self._insert_after(self._descend(index), nid)
        self._size += 1
        self._adjust_spans_above(nid, 1, +1)
        self._promote(index, nid)

    def append(self, element: T) -> None:
        self.add(self._size, element)

    # ------------------------------------------------------------------
    # Sequence conveniences
    # ------------------------------------------------------------------
    def extend(self, items: Iterable[T]) -> None:
        for item in items:
            self.append(item)

    def pop(self, index: int = -1) -> T:
        """Remove and return the element at `index` (negative counts from the end)."""
        _require_int(index)
        pos = index + self._size if index < 0 else index
        if pos < 0 or pos >= self._size:
            raise OutOfRangeError(index, self._size, op="pop")
        base = self._descend(pos + 1)
        tower = [base]
        while (up := self._n(tower[-1]).up) is not None:
            tower.append(up)
        self._adjust_spans_above(tower[-1], len(tower), -1)
        data = self._n(base).data
        for nid in tower:
            node = self._n(nid)
            self._n(node.right).span += node.span - 1
            self._link(node.left, node.right)
            self._release(nid)
        self._size -= 1
        return data  # type: ignore[return-value]

    def clear(self) -> None:
        logger.debug("clearing skip list (size=%d, height=%d)", self._size, self._height)
        self._reset()

    def is_empty(self) -> bool:
        return self._size == 0

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, index: int) -> T:
        _require_int(index)
        pos = index + self._size if index < 0 else index
        if pos < 0 or pos >= self._size:
            raise OutOfRangeError(index, self._size, op="get")
        return self.get(pos)

    def __iter__(self) -> Iterator[T]:
        p = self._n(self._base).right
        # only the tail sentinel has no right neighbour
        while (node := self._n(p)).right is not None:
            yield node.data  # type: ignore[misc]
            p = node.right

    def __str__(self) -> str:
        return "[" + ", ".join(str(item) for item in self) + "]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"

    # ------------------------------------------------------------------
    # Diagnostics 🔎
    # ------------------------------------------------------------------
    def levels(self) -> list[list[tuple[Optional[T], int]]]:
        """Per-level ``(data, span)`` pairs, base level first.

        The tail sentinel closes each level as ``(None, span)``.
        """
        out: list[list[tuple[Optional[T], int]]] = []
        head: Optional[int] = self._base
        while head is not None:
            row = []
            p = self._n(head).right
            while p is not None:
                node = self._n(p)
                row.append((node.data, node.span))
                p = node.right
            out.append(row)
            head = self._n(head).up
        return out

    def node_count(self) -> int:
        """Number of live data nodes over all levels (sentinels excluded)."""
        return len(self._nodes) - len(self._free) - 2 * self._height

    # ------------------------------------------------------------------
    # Snapshot 📦
    # ------------------------------------------------------------------
    def to_bytes(self) -> bytes:
        from .snapshot import dump

        return dump(self)

    @classmethod
    def from_bytes(
        cls,
        blob: bytes,
        *,
        coin: Optional[CoinSource] = None,
        max_height: Optional[int] = None,
    ) -> "IndexableSkipList":
        from .snapshot import load

        return load(blob, coin=coin, max_height=max_height, cls=cls)
