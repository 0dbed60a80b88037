"""Unit tests for msgpack arena snapshots."""
import msgpack
import pytest

from pyskip import IndexableSkipList, RandomCoin, ScriptedCoin, SnapshotError
from pyskip.snapshot import dump, load


@pytest.fixture
def sample():
    sl = IndexableSkipList(coin=RandomCoin(31))
    for i in range(64):
        sl.add(i // 3, f"v{i}")
    for _ in range(10):
        sl.pop(5)
    return sl


def test_roundtrip_preserves_shape(sample, check_structure):
    clone = IndexableSkipList.from_bytes(sample.to_bytes())
    assert clone.levels() == sample.levels()
    assert clone.height == sample.height
    assert clone.size() == sample.size()
    assert clone.node_count() == sample.node_count()
    assert clone._free == sample._free
    check_structure(clone)


def test_clone_is_independent(sample, check_structure):
    clone = load(dump(sample), coin=ScriptedCoin([True, True, True, True]))
    before = sample.levels()
    clone.add(0, "new")
    clone.pop(-1)
    assert sample.levels() == before
    assert clone.get(0) == "new"
    check_structure(clone)


def test_empty_roundtrip():
    clone = IndexableSkipList.from_bytes(IndexableSkipList().to_bytes())
    assert str(clone) == "[]"
    assert clone.height == 1


def test_loaded_list_honours_max_height():
    blob = IndexableSkipList(coin=ScriptedCoin()).to_bytes()
    clone = IndexableSkipList.from_bytes(blob, coin=ScriptedCoin([True] * 5), max_height=2)
    clone.append("a")
    assert clone.height == 2


@pytest.mark.parametrize(
    "blob",
    [
        b"",
        b"garbage",
        msgpack.packb([1, 2, 3]),
        msgpack.packb({"v": 99}),
        msgpack.packb({"v": 1, "size": 0}),
        msgpack.packb(
            {"v": 1, "size": 0, "height": 1, "head": 5, "tail": 1, "base": 0, "nodes": [None, None]}
        ),
        msgpack.packb(
            {"v": 1, "size": 0, "height": 1, "head": 0, "tail": 1, "base": 0, "nodes": [[1], [2]]}
        ),
    ],
)
def test_bad_snapshots_raise(blob):
    with pytest.raises(SnapshotError):
        load(blob)


def _empty_doc(**overrides):
    """Snapshot document of an empty list, with selected fields replaced."""
    doc = {
        "v": 1,
        "size": 0,
        "height": 1,
        "head": 0,
        "tail": 1,
        "base": 0,
        "nodes": [[None, 1, None, 1, None, None], [None, 1, 0, None, None, None]],
    }
    doc.update(overrides)
    return doc


def test_empty_doc_helper_matches_dump():
    assert msgpack.unpackb(IndexableSkipList().to_bytes(), raw=False) == _empty_doc()


@pytest.mark.parametrize(
    "doc",
    [
        _empty_doc(nodes=[7, 8]),
        _empty_doc(nodes="not an array"),
        _empty_doc(size=5),
        _empty_doc(size=-1),
        _empty_doc(height=2),
        _empty_doc(head=1, tail=0),
        _empty_doc(nodes=[[None, 1, None, 9, None, None], [None, 1, 0, None, None, None]]),
        _empty_doc(nodes=[[None, 1, None, 1, None, None], [None, 0, 0, None, None, None]]),
        _empty_doc(nodes=[[None, 1, None, 1, None, None], [None, "1", 0, None, None, None]]),
        _empty_doc(nodes=[[None, 1, None, 1, None, None], [None, 1, None, None, None, None]]),
        _empty_doc(nodes=[[None, 1, None, 1, None, None], [None, 1, 0, None, 0, None]]),
        _empty_doc(nodes=[[None, 1, None, 1, None, None], [None, 1, 0, None, None, None], None],
                   tail=2),
    ],
)
def test_inconsistent_snapshots_raise(doc):
    """Structurally broken arenas are rejected up front, not on first use."""
    with pytest.raises(SnapshotError):
        load(msgpack.packb(doc, use_bin_type=True))


def test_size_must_match_base_chain(sample):
    doc = msgpack.unpackb(dump(sample), raw=False)
    doc["size"] += 1
    with pytest.raises(SnapshotError):
        load(msgpack.packb(doc, use_bin_type=True))


def test_tuples_survive_roundtrip():
    items = [(1, 2), ("a", (3, ())), [4, (5,)], {1: "x"}]
    clone = IndexableSkipList.from_bytes(IndexableSkipList(items, coin=RandomCoin(3)).to_bytes())
    assert list(clone) == items
    assert type(clone.get(0)) is tuple
    assert type(clone.get(1)[1]) is tuple
    assert type(clone.get(2)) is list
    assert type(clone.get(2)[1]) is tuple


def test_unsupported_element_raises():
    with pytest.raises(SnapshotError):
        IndexableSkipList([{1, 2}]).to_bytes()
