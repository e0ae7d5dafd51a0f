"""Shared fixtures: a controllable clock and scripted randomness."""

from collections.abc import Iterable

import pytest


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class ScriptedRng:
    """
    Stand-in for ``numpy.random.Generator`` that replays fixed draws.

    ``integers`` returns its scripted values clamped into the requested range,
    so a script written for one range stays valid for any other.
    """

    def __init__(self, reals: Iterable[float] = (), ints: Iterable[int] = ()) -> None:
        self._reals = list(reals)
        self._ints = list(ints)

    def random(self) -> float:
        return self._reals.pop(0)

    def integers(self, low: int, high: int, endpoint: bool = False) -> int:
        top = high if endpoint else high - 1
        return max(low, min(top, self._ints.pop(0)))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
