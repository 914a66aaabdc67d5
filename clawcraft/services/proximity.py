"""
Proximity detector - turns position updates into bump events.

Bumps are edge-triggered: a pair produces one bump when it first comes
within the threshold and must separate before it can bump again. A pair
standing together therefore gets one engagement roll, not one per scan.
"""

from __future__ import annotations

import logging
from itertools import combinations

from clawcraft.domain import ParticipantId, Position

logger = logging.getLogger(__name__)

Bump = tuple[ParticipantId, ParticipantId]


class ProximityDetector:
    """Tracks positions and reports newly-close pairs."""

    def __init__(self, threshold: float = 2.0):
        if threshold <= 0:
            raise ValueError("threshold must be positive")
        self._threshold = threshold
        self._positions: dict[ParticipantId, Position] = {}
        self._in_range: set[Bump] = set()

    @property
    def threshold(self) -> float:
        return self._threshold

    def update(self, participant_id: ParticipantId, position: Position) -> None:
        self._positions[participant_id] = Position(*position)

    def remove(self, participant_id: ParticipantId) -> None:
        self._positions.pop(participant_id, None)
        self._in_range = {pair for pair in self._in_range if participant_id not in pair}

    def position_of(self, participant_id: ParticipantId) -> Position | None:
        return self._positions.get(participant_id)

    def is_close(self, a: ParticipantId, b: ParticipantId) -> bool:
        pa = self._positions.get(a)
        pb = self._positions.get(b)
        if pa is None or pb is None:
            return False
        return pa.distance_to(pb) < self._threshold

    def scan(self) -> list[Bump]:
        """Pairs that crossed into range since the previous scan, sorted."""
        now_in_range: set[Bump] = set()
        for a, b in combinations(sorted(self._positions), 2):
            if self._positions[a].distance_to(self._positions[b]) < self._threshold:
                now_in_range.add((a, b))

        bumps = sorted(now_in_range - self._in_range)
        self._in_range = now_in_range
        if bumps:
            logger.debug(f"Bumps: {bumps}")
        return bumps
