"""
Demo position feed - personas wandering a small grid.

Each persona walks toward a random target and picks a new one on arrival.
Busy personas (talking or chatting) stand still, like the pathing layer of
the live world.
"""

from __future__ import annotations

import random
from typing import Callable, Iterable

from clawcraft.domain import ParticipantId, Position


class WanderFeed:
    """PositionFeed for EncounterRunner."""

    def __init__(
        self,
        participant_ids: Iterable[str],
        is_busy: Callable[[str], bool] = lambda _: False,
        width: float = 12.0,
        height: float = 12.0,
        speed: float = 1.5,
        seed: int | None = None,
    ):
        self._rng = random.Random(seed)
        self._is_busy = is_busy
        self._width = width
        self._height = height
        self._speed = speed
        self._positions: dict[ParticipantId, Position] = {}
        self._targets: dict[ParticipantId, Position] = {}
        self._last: float | None = None
        for pid in participant_ids:
            self._positions[ParticipantId(pid)] = self._random_point()
            self._targets[ParticipantId(pid)] = self._random_point()

    def _random_point(self) -> Position:
        return Position(self._rng.uniform(0, self._width), self._rng.uniform(0, self._height))

    @property
    def positions(self) -> dict[ParticipantId, Position]:
        return dict(self._positions)

    def step(self, now: float) -> dict[ParticipantId, Position]:
        """Advance everyone by the time elapsed since the previous step."""
        dt = 0.0 if self._last is None else max(0.0, now - self._last)
        self._last = now
        stride = self._speed * dt

        for pid, pos in self._positions.items():
            if self._is_busy(pid):
                continue
            target = self._targets[pid]
            distance = pos.distance_to(target)
            if distance <= stride or distance == 0:
                self._positions[pid] = target
                self._targets[pid] = self._random_point()
                continue
            ratio = stride / distance
            self._positions[pid] = Position(
                pos.x + (target.x - pos.x) * ratio,
                pos.y + (target.y - pos.y) * ratio,
            )
        return dict(self._positions)
