"""
Bubble scheduler - timed visibility for speech bubbles.

Each participant has at most one bubble. A bubble lives for read_time(text)
seconds; hovering a bubble holds it on screen, and after the pointer leaves it
stays for a short release delay to avoid flicker.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from clawcraft.domain import ParticipantId, SpeechBubble

logger = logging.getLogger(__name__)


class BubbleScheduler:
    """Owns the active speech bubbles, keyed by participant id."""

    def __init__(
        self,
        min_seconds: float = 2.5,
        max_seconds: float = 8.0,
        base_seconds: float = 1.5,
        seconds_per_char: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
    ):
        if min_seconds > max_seconds:
            raise ValueError("min_seconds must not exceed max_seconds")
        self._min = min_seconds
        self._max = max_seconds
        self._base = base_seconds
        self._per_char = seconds_per_char
        self._clock = clock
        self._bubbles: dict[ParticipantId, SpeechBubble] = {}
        self._hovered: set[ParticipantId] = set()
        self._hold_until: dict[ParticipantId, float] = {}  # post-hover release deadline

    def read_time(self, text: str) -> float:
        """Seconds a bubble stays up: linear in length, clamped to [min, max]."""
        raw = self._base + self._per_char * len(text)
        return min(self._max, max(self._min, raw))

    # --- Queries ---

    def get(self, participant_id: ParticipantId) -> SpeechBubble | None:
        return self._bubbles.get(participant_id)

    def active(self) -> dict[ParticipantId, SpeechBubble]:
        return dict(self._bubbles)

    def is_hovered(self, participant_id: ParticipantId) -> bool:
        return participant_id in self._hovered

    # --- Commands ---

    def show(self, participant_id: ParticipantId, text: str, color: str) -> SpeechBubble:
        """Create or replace the participant's bubble."""
        bubble = SpeechBubble(
            participant_id=participant_id,
            text=text,
            color=color,
            expires_at=self._clock() + self.read_time(text),
        )
        self._bubbles[participant_id] = bubble
        self._hold_until.pop(participant_id, None)
        return bubble

    def clear(self, participant_id: ParticipantId) -> bool:
        """Remove a bubble immediately (hover state is forgotten too)."""
        self._hovered.discard(participant_id)
        self._hold_until.pop(participant_id, None)
        return self._bubbles.pop(participant_id, None) is not None

    def clear_all(self) -> None:
        self._bubbles.clear()
        self._hovered.clear()
        self._hold_until.clear()

    def set_hovered(self, participant_id: ParticipantId) -> None:
        self._hovered.add(participant_id)
        self._hold_until.pop(participant_id, None)

    def clear_hovered(self, participant_id: ParticipantId, delay_seconds: float = 0.0) -> None:
        """Pointer left the bubble: allow expiry again after delay_seconds."""
        self._hovered.discard(participant_id)
        if delay_seconds > 0:
            self._hold_until[participant_id] = self._clock() + delay_seconds

    def tick(self, now: float | None = None) -> list[ParticipantId]:
        """Drop bubbles that are expired, not hovered and past any hover hold."""
        now = self._clock() if now is None else now
        removed: list[ParticipantId] = []
        for participant_id, bubble in list(self._bubbles.items()):
            if not bubble.is_expired(now):
                continue
            if participant_id in self._hovered:
                continue
            hold = self._hold_until.get(participant_id)
            if hold is not None and now < hold:
                continue
            del self._bubbles[participant_id]
            self._hold_until.pop(participant_id, None)
            removed.append(participant_id)
        if removed:
            logger.debug(f"Expired bubbles: {removed}")
        return removed
