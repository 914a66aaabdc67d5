"""
EncounterRunner - drives an EncounterEngine from the event loop.

Each tick:
- feeds positions from an optional position feed (bumps become sessions)
- expires speech bubbles
- drops the last transcript once its grace window passes
- every health_check_interval, force-ends a stuck session

Everything runs on the caller's event loop; the engine is never touched
from another thread.

Usage:
    runner = EncounterRunner(engine, feed=wander.step)
    runner.start()
    ...
    await runner.stop()
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Mapping

from clawcraft.domain import Position

if TYPE_CHECKING:
    from clawcraft.engine import EncounterEngine

logger = logging.getLogger(__name__)

PositionFeed = Callable[[float], Mapping[str, Position]]


class EncounterRunner:
    """Periodic maintenance loop for an encounter engine."""

    def __init__(self, engine: "EncounterEngine", feed: PositionFeed | None = None):
        self._engine = engine
        self._feed = feed
        self._task: asyncio.Task | None = None
        self._last_health_check: float | None = None
        self._ticks = 0

    @property
    def engine(self) -> "EncounterEngine":
        return self._engine

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def ticks(self) -> int:
        return self._ticks

    def tick_once(self, now: float) -> None:
        """One maintenance pass at time `now` (engine clock seconds)."""
        engine = self._engine
        self._ticks += 1

        if self._feed is not None:
            engine.update_positions(self._feed(now))

        engine.bubbles.tick(now)
        engine.expire_transcript(now)

        interval = engine.settings.health_check_interval_seconds
        if self._last_health_check is None or now - self._last_health_check >= interval:
            self._last_health_check = now
            engine.check_health(now)
            engine.reset_stuck_participants()

    def start(self) -> None:
        """Start ticking on the running loop."""
        if self.is_running:
            logger.warning("Encounter runner already running")
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Encounter runner started")

    async def stop(self) -> None:
        """Stop ticking and shut the engine down."""
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._engine.shutdown()
        logger.info(f"Encounter runner stopped after {self._ticks} tick(s)")

    async def run_for(self, seconds: float) -> None:
        """Run for a fixed wall time, then stop."""
        self.start()
        try:
            await asyncio.sleep(seconds)
        finally:
            await self.stop()

    async def _loop(self) -> None:
        interval = self._engine.settings.tick_interval_seconds
        while True:
            try:
                self.tick_once(self._engine.now())
            except Exception as e:
                logger.error(f"Runner tick error: {e}", exc_info=True)
            await asyncio.sleep(interval)
