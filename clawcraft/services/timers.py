"""
Epoch-bound timers.

Timers are armed for a specific session epoch. When one fires after the
engine has moved on (force-end, a newer session) the callback is skipped, so
a stale timer can never act on a session it was not armed for.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class EpochTimers:
    """Named, cancellable loop.call_later handles guarded by an epoch check."""

    def __init__(self, current_epoch: Callable[[], int]):
        self._current_epoch = current_epoch
        self._handles: dict[str, asyncio.TimerHandle] = {}

    def schedule(
        self,
        name: str,
        delay: float,
        epoch: int,
        callback: Callable[[int], None],
    ) -> None:
        """
        Arm a timer. Re-using a name replaces (and cancels) the old timer.

        The callback receives the epoch it was armed for and only runs if the
        engine is still on that epoch when the timer fires.
        """
        self.cancel(name)
        loop = asyncio.get_running_loop()
        self._handles[name] = loop.call_later(delay, self._fire, name, epoch, callback)

    def _fire(self, name: str, epoch: int, callback: Callable[[int], None]) -> None:
        self._handles.pop(name, None)
        current = self._current_epoch()
        if current != epoch:
            logger.debug(f"Stale timer '{name}' ignored (armed={epoch}, current={current})")
            return
        callback(epoch)

    def cancel(self, name: str) -> bool:
        handle = self._handles.pop(name, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    def is_armed(self, name: str) -> bool:
        return name in self._handles

    @property
    def armed(self) -> tuple[str, ...]:
        return tuple(self._handles)
