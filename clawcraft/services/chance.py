"""
Chance sources for probabilistic gates.

Every coin flip in the engine (engagement, joining, scripted-content choice)
goes through a ChanceSource so tests and demos can force outcomes.
"""

import random
from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")


class ChanceSource(Protocol):
    """Pluggable randomness."""

    def roll(self, probability: float) -> bool:
        """Return True with the given probability."""
        ...

    def choice(self, options: Sequence[T]) -> T:
        """Pick one of the options."""
        ...


class RandomChance:
    """Chance source backed by random.Random (seedable)."""

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def roll(self, probability: float) -> bool:
        if probability <= 0.0:
            return False
        if probability >= 1.0:
            return True
        return self._rng.random() < probability

    def choice(self, options: Sequence[T]) -> T:
        if not options:
            raise ValueError("Cannot choose from an empty sequence")
        return self._rng.choice(options)


class FixedChance:
    """
    Deterministic chance source.

    Every roll returns `outcome`; choice() returns options[index % len].
    """

    def __init__(self, outcome: bool = True, index: int = 0):
        self.outcome = outcome
        self.index = index
        self.rolls: list[float] = []  # probabilities asked for, in order

    def roll(self, probability: float) -> bool:
        self.rolls.append(probability)
        return self.outcome

    def choice(self, options: Sequence[T]) -> T:
        if not options:
            raise ValueError("Cannot choose from an empty sequence")
        return options[self.index % len(options)]
