"""
Cooldown ledger - gates how soon the same participant set may talk again.

Keys are order-independent pair keys; timestamps are monotonic seconds from
the injected clock. Entries are never evicted: the map is keyed by small id
sets and stays tiny at village scale.
"""

import logging
import time
from typing import Callable, Iterable

from clawcraft.domain import PairKey, make_pair_key

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CooldownLedger:
    """Per participant set, the time of their last conversation."""

    def __init__(self, window_seconds: float, clock: Clock = time.monotonic):
        self._window = window_seconds
        self._clock = clock
        self._last: dict[PairKey, float] = {}

    @property
    def window_seconds(self) -> float:
        return self._window

    def can_engage(self, ids: Iterable[str]) -> bool:
        """True iff the set has never talked or the window has fully passed."""
        key = make_pair_key(ids)
        last = self._last.get(key)
        if last is None:
            return True
        return self._clock() - last > self._window

    def record_engagement(self, ids: Iterable[str]) -> PairKey:
        """Stamp the set as having talked now. Returns the key written."""
        key = make_pair_key(ids)
        self._last[key] = self._clock()
        logger.debug(f"Cooldown recorded for {key}")
        return key

    def last_engaged(self, ids: Iterable[str]) -> float | None:
        return self._last.get(make_pair_key(ids))

    def remaining(self, ids: Iterable[str]) -> float:
        """Seconds until the set may talk again (0.0 if eligible)."""
        last = self.last_engaged(ids)
        if last is None:
            return 0.0
        return max(0.0, self._window - (self._clock() - last))

    def entries(self) -> dict[PairKey, float]:
        return dict(self._last)
