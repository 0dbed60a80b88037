"""Random-bit sources driving level promotion.

The skip list only ever asks one question, "promote once more?", so a source
is anything with a ``flip() -> bool`` method. Two implementations ship:

    • `RandomCoin`   – fair 50 % coin backed by `random.Random`
    • `ScriptedCoin` – replays a fixed outcome sequence (tests)
"""
from __future__ import annotations

from collections.abc import Iterable
from random import Random
from typing import Optional, Protocol, runtime_checkable

__all__ = ["CoinSource", "RandomCoin", "ScriptedCoin"]

_P = 0.5


@runtime_checkable
class CoinSource(Protocol):
    def flip(self) -> bool:  # pragma: no cover
        ...


class RandomCoin:
    """Fair coin, reseedable for deterministic replays."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = Random(seed)

    def reseed(self, seed: Optional[int]) -> None:
        self._rng.seed(seed)

    def flip(self) -> bool:
        return self._rng.random() < _P


class ScriptedCoin:
    """Coin returning pre-recorded outcomes, then ``False`` once exhausted."""

    def __init__(self, outcomes: Iterable[bool] = ()):
        self._outcomes = list(outcomes)
        self._pos = 0

    def push(self, *outcomes: bool) -> None:
        self._outcomes.extend(outcomes)

    @property
    def remaining(self) -> int:
        return len(self._outcomes) - self._pos

    def flip(self) -> bool:
        if self._pos >= len(self._outcomes):
            return False
        outcome = self._outcomes[self._pos]
        self._pos += 1
        return bool(outcome)
