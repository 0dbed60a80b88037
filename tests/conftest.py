"""Shared fixtures: structural checks for skip lists under test."""
import pytest

from pyskip import IndexableSkipList, RandomCoin


def _check_structure(sl: IndexableSkipList) -> None:
    """Assert every level's cumulative spans match base-level ranks.

    Elements must be distinct so that data identifies a base position.
    """
    base = list(sl)
    levels = sl.levels()
    assert len(base) == len(sl) == sl.size()
    assert len(levels) == sl.height
    assert levels[0] == [(x, 1) for x in base] + [(None, 1)]

    below: set[int] = set(range(1, len(base) + 1))
    for row in levels:
        rank = 0
        ranks: set[int] = set()
        for data, span in row[:-1]:
            assert span >= 1
            rank += span
            assert base[rank - 1] == data
            ranks.add(rank)
        assert rank + row[-1][1] == len(base) + 1
        assert ranks <= below
        below = ranks

    # vertical links: every copy above the base sits on a copy of itself
    head, level = sl._base, 1
    while head is not None:
        p = sl._n(head).right
        while sl._n(p).right is not None:
            node = sl._n(p)
            if level == 1:
                assert node.down is None
            else:
                assert sl._n(node.down).up == p
                assert sl._n(node.down).data == node.data
            p = node.right
        top = head
        head = sl._n(head).up
        level += 1
    assert top == sl._head


@pytest.fixture
def check_structure():
    return _check_structure


@pytest.fixture
def seeded():
    """Factory for skip lists with a reproducible coin."""

    def make(seed: int = 0, **kwargs) -> IndexableSkipList:
        return IndexableSkipList(coin=RandomCoin(seed), **kwargs)

    return make
