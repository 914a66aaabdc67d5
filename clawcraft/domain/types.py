"""Foundational types for ClawCraft encounters.

- Type aliases for domain identifiers
- Position: world coordinates (x, y) in grid units
- PairKey derivation for order-independent participant sets
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Iterable, NamedTuple, NewType

# Type aliases for domain identifiers
ParticipantId = NewType("ParticipantId", str)
SessionId = NewType("SessionId", str)
PairKey = NewType("PairKey", str)

PAIR_KEY_SEPARATOR = "-"


def make_pair_key(ids: Iterable[str]) -> PairKey:
    """Build the order-independent key for a participant set.

    Ids are de-duplicated and sorted before joining, so
    make_pair_key(["musk", "naval"]) == make_pair_key(["naval", "musk"]).
    """
    return PairKey(PAIR_KEY_SEPARATOR.join(sorted(set(ids))))


class Position(NamedTuple):
    """A position in the world, in grid units (fractional while walking)."""

    x: float
    y: float

    def distance_to(self, other: Position) -> float:
        """Euclidean distance to another position."""
        return math.hypot(self.x - other.x, self.y - other.y)


class MovementStatus(Enum):
    """Movement signal shared with the pathing layer."""

    IDLE = "idle"
    WALKING = "walking"
    TALKING = "talking"   # held by an encounter session
    CHATTING = "chatting"  # held by a user chat panel

    @property
    def is_busy(self) -> bool:
        """Busy participants cannot start or join an encounter."""
        return self in (MovementStatus.TALKING, MovementStatus.CHATTING)
