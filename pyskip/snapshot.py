"""Byte snapshots of a skip list's node arena.

The whole structure (sentinels, promoted copies and spans included) is
encoded with *msgpack* so that a list can be rebuilt with the exact same
shape, which random promotion would otherwise never reproduce:

    {
      "v":      format version,
      "size":   element count,
      "height": level count,
      "head":   top-level head id,   "tail": top-level tail id,
      "base":   base-level head id,
      "nodes":  [[data, span, left, right, up, down] | nil, ...]
    }

``nil`` slots are released ids and become the free list on load. Element
data must itself be msgpack-serialisable; tuples travel as an extension type
so they come back as tuples rather than lists.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import msgpack
from msgpack.exceptions import UnpackException

from .coin import CoinSource
from .errors import SnapshotError
from .skiplist import IndexableSkipList, _Node

__all__ = ["dump", "load"]

logger = logging.getLogger(__name__)

_VERSION = 1
_HEADER_KEYS = ("size", "height", "head", "tail", "base", "nodes")
_NODE_FIELDS = 6
_EXT_TUPLE = 1


def _encode(obj: Any) -> Any:
    # strict_types routes tuples here instead of silently packing them as arrays
    if type(obj) is tuple:
        return msgpack.ExtType(_EXT_TUPLE, _packb(list(obj)))
    raise SnapshotError(f"cannot snapshot element of type {type(obj).__name__}")


def _decode(code: int, data: bytes) -> Any:
    if code == _EXT_TUPLE:
        return tuple(_unpackb(data))
    raise SnapshotError(f"unknown msgpack extension type {code}")


def _packb(obj: Any) -> bytes:
    return msgpack.packb(obj, use_bin_type=True, strict_types=True, default=_encode)


def _unpackb(blob: bytes) -> Any:
    return msgpack.unpackb(blob, raw=False, strict_map_key=False, ext_hook=_decode)


def _is_count(value: Any, minimum: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= minimum


def dump(sl: IndexableSkipList) -> bytes:
    """Encode `sl`; raises `SnapshotError` for elements msgpack cannot round-trip."""
    nodes = [
        None if n is None else [n.data, n.span, n.left, n.right, n.up, n.down]
        for n in sl._nodes
    ]
    doc = {
        "v": _VERSION,
        "size": sl._size,
        "height": sl._height,
        "head": sl._head,
        "tail": sl._tail,
        "base": sl._base,
        "nodes": nodes,
    }
    return _packb(doc)


def _build_nodes(raw_nodes: list[Any]) -> tuple[list[Optional[_Node]], list[int]]:
    nodes: list[Optional[_Node]] = []
    free: list[int] = []
    for nid, raw in enumerate(raw_nodes):
        if raw is None:
            nodes.append(None)
            free.append(nid)
            continue
        if not isinstance(raw, list) or len(raw) != _NODE_FIELDS:
            raise SnapshotError(f"node {nid} is not a {_NODE_FIELDS}-field array")
        data, span, left, right, up, down = raw
        if not _is_count(span, 1):
            raise SnapshotError(f"node {nid} has invalid span {span!r}")
        node: _Node = _Node(data, span)
        node.left, node.right, node.up, node.down = left, right, up, down
        nodes.append(node)

    def live(link: Any) -> bool:
        return _is_count(link, 0) and link < len(nodes) and nodes[link] is not None

    for nid, node in enumerate(nodes):
        if node is None:
            continue
        for name in ("left", "right", "up", "down"):
            link = getattr(node, name)
            if link is not None and not live(link):
                raise SnapshotError(f"node {nid} {name} link {link!r} does not name a live node")
        if node.right is not None and nodes[node.right].left != nid:
            raise SnapshotError(f"node {nid} and its right neighbour disagree")
        if node.left is not None and nodes[node.left].right != nid:
            raise SnapshotError(f"node {nid} and its left neighbour disagree")
        if node.up is not None and nodes[node.up].down != nid:
            raise SnapshotError(f"node {nid} and its upper copy disagree")
        if node.down is not None and nodes[node.down].up != nid:
            raise SnapshotError(f"node {nid} and its lower copy disagree")
    return nodes, free


def _check_levels(doc: dict, nodes: list[Optional[_Node]]) -> None:
    """Walk every level from the base head up; each must close at size + 1."""
    size, height = doc["size"], doc["height"]
    if not _is_count(size, 0) or not _is_count(height, 1):
        raise SnapshotError(f"invalid size/height {size!r}/{height!r}")
    head: Optional[int] = doc["base"]
    if nodes[head].left is not None or nodes[head].down is not None:
        raise SnapshotError("base id is not the bottom-left sentinel")
    level = 0
    while head is not None:
        level += 1
        if level > height:
            raise SnapshotError(f"more than {height} levels reachable")
        p, steps, rank = head, 0, 0
        while (right := nodes[p].right) is not None:
            p = right
            rank += nodes[p].span
            steps += 1
            if steps > len(nodes):
                raise SnapshotError(f"level {level} does not terminate")
        if rank != size + 1:
            raise SnapshotError(f"level {level} spans {rank} positions, expected {size + 1}")
        if level == 1 and steps != size + 1:
            raise SnapshotError(f"base level holds {steps - 1} elements, expected {size}")
        top_head, top_tail = head, p
        head = nodes[head].up
    if level != height:
        raise SnapshotError(f"{level} levels reachable, expected {height}")
    if (top_head, top_tail) != (doc["head"], doc["tail"]):
        raise SnapshotError("head/tail ids do not name the top-level sentinels")


def load(
    blob: bytes,
    *,
    coin: Optional[CoinSource] = None,
    max_height: Optional[int] = None,
    cls: type[IndexableSkipList] = IndexableSkipList,
) -> IndexableSkipList:
    """Rebuild a skip list from `dump` output.

    Any malformed or inconsistent input raises `SnapshotError`.
    """
    try:
        doc = _unpackb(blob)
    except (ValueError, TypeError, UnpackException) as exc:
        if isinstance(exc, SnapshotError):
            raise
        raise SnapshotError(f"undecodable snapshot: {exc}") from exc
    if not isinstance(doc, dict):
        raise SnapshotError("snapshot root must be a map")
    if doc.get("v") != _VERSION:
        raise SnapshotError(f"unsupported snapshot version {doc.get('v')!r}")
    missing = [k for k in _HEADER_KEYS if k not in doc]
    if missing:
        raise SnapshotError(f"snapshot missing fields: {', '.join(missing)}")
    if not isinstance(doc["nodes"], list):
        raise SnapshotError("snapshot nodes must be an array")

    nodes, free = _build_nodes(doc["nodes"])
    for key in ("head", "tail", "base"):
        nid = doc[key]
        if not _is_count(nid, 0) or nid >= len(nodes) or nodes[nid] is None:
            raise SnapshotError(f"snapshot {key} id {nid!r} does not name a live node")
    _check_levels(doc, nodes)

    sl = cls(coin=coin, max_height=max_height)
    sl._nodes = nodes
    sl._free = free
    sl._size = doc["size"]
    sl._height = doc["height"]
    sl._head = doc["head"]
    sl._tail = doc["tail"]
    sl._base = doc["base"]
    logger.debug("loaded snapshot: size=%d height=%d nodes=%d", sl._size, sl._height, len(nodes))
    return sl
