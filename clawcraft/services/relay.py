"""
Notification relay - posts finished conversations to the outside world.

notify() formats a transcript and hands it to every sink as a background
task; the caller never waits for delivery and never sees a sink failure.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field

from clawcraft.domain import DialogueTurn, Participant, ParticipantId
from clawcraft.logging_config import log_relay

logger = logging.getLogger(__name__)


class TranscriptMessage(BaseModel):
    """A formatted conversation ready for posting."""

    model_config = ConfigDict(frozen=True)

    channel_id: str
    text: str
    participant_ids: tuple[ParticipantId, ...]
    created_at: datetime = Field(default_factory=datetime.now)


class RelaySink(Protocol):
    """Somewhere transcripts are delivered to."""

    name: str

    async def deliver(self, message: TranscriptMessage) -> None:
        ...


def format_transcript(
    participants: Sequence[Participant],
    turns: Sequence[DialogueTurn],
) -> str:
    """
    Human-readable transcript for chat channels.

    The header names the two founding participants; only dialogue turns are
    listed. Unknown speakers are attributed to the second participant.
    """
    if len(participants) < 2:
        raise ValueError("A transcript needs at least two participants")
    first, second = participants[0], participants[1]
    names = {p.id: p.display_name for p in participants}

    lines = [
        f"**{names.get(turn.speaker_id, second.display_name)}:** {turn.text}"
        for turn in turns
        if turn.is_dialogue
    ]
    header = f"🗣️ **{first.display_name}** and **{second.display_name}** crossed paths..."
    return "\n\n".join([header, *lines])


class NotificationRelay:
    """Fire-and-forget fan-out of transcripts to sinks."""

    def __init__(self, sinks: Sequence[RelaySink], channel_id: str):
        self._sinks = list(sinks)
        self._channel_id = channel_id
        self._pending: set[asyncio.Task] = set()

    @property
    def sinks(self) -> tuple[RelaySink, ...]:
        return tuple(self._sinks)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def add_sink(self, sink: RelaySink) -> None:
        self._sinks.append(sink)

    def build_message(
        self,
        participants: Sequence[Participant],
        turns: Sequence[DialogueTurn],
    ) -> TranscriptMessage:
        return TranscriptMessage(
            channel_id=self._channel_id,
            text=format_transcript(participants, turns),
            participant_ids=tuple(p.id for p in participants),
        )

    def notify(
        self,
        participants: Sequence[Participant],
        turns: Sequence[DialogueTurn],
    ) -> TranscriptMessage | None:
        """
        Schedule delivery of the transcript to every sink.

        Returns the message that was scheduled, or None when there is nothing
        to post (no sinks or no dialogue).
        """
        if not self._sinks:
            return None
        if not any(turn.is_dialogue for turn in turns):
            logger.debug("Relay skipped: no dialogue turns")
            return None

        message = self.build_message(participants, turns)
        for sink in self._sinks:
            task = asyncio.create_task(self._deliver(sink, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return message

    async def _deliver(self, sink: RelaySink, message: TranscriptMessage) -> None:
        try:
            await sink.deliver(message)
        except Exception as e:
            log_relay(logger, sink.name, success=False, details=repr(e))
            return
        log_relay(logger, sink.name, details=f"participants={list(message.participant_ids)}")

    async def drain(self) -> None:
        """Wait for in-flight deliveries."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
