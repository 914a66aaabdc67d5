"""
Display snapshots - read-only views of encounter state for operators and the CLI.

These types are optimized for display, not for domain logic.
They flatten nested structures and compute derived values.
"""

from __future__ import annotations

from dataclasses import dataclass

from clawcraft.domain import (
    ConversationSession,
    DialogueTurn,
    MovementStatus,
    Participant,
    SpeechBubble,
)


@dataclass(frozen=True)
class ParticipantDisplaySnapshot:
    """Persona state for display."""

    id: str
    display_name: str
    color: str
    status: str
    in_session: bool

    @classmethod
    def from_domain(
        cls,
        participant: Participant,
        status: MovementStatus,
        in_session: bool = False,
    ) -> ParticipantDisplaySnapshot:
        return cls(
            id=participant.id,
            display_name=participant.display_name,
            color=participant.color,
            status=status.value,
            in_session=in_session,
        )


@dataclass(frozen=True)
class TurnDisplaySnapshot:
    speaker_id: str
    speaker_name: str
    text: str
    kind: str


@dataclass(frozen=True)
class SessionDisplaySnapshot:
    """The active session, flattened."""

    id: str
    phase: str
    participants: tuple[str, ...]
    founding_pair: str
    turns: tuple[TurnDisplaySnapshot, ...]
    elapsed_seconds: float
    is_talking: bool
    content_source: str | None

    @classmethod
    def from_domain(cls, session: ConversationSession, now: float) -> SessionDisplaySnapshot:
        return cls(
            id=session.id,
            phase=session.phase.value,
            participants=session.participant_ids,
            founding_pair=session.pair_key,
            turns=tuple(_turn_snapshot(t, session.participants) for t in session.turns),
            elapsed_seconds=round(session.elapsed(now), 2),
            is_talking=session.is_talking,
            content_source=session.content_source,
        )


@dataclass(frozen=True)
class BubbleDisplaySnapshot:
    participant_id: str
    text: str
    color: str
    seconds_left: float
    hovered: bool

    @classmethod
    def from_domain(cls, bubble: SpeechBubble, now: float, hovered: bool) -> BubbleDisplaySnapshot:
        return cls(
            participant_id=bubble.participant_id,
            text=bubble.text,
            color=bubble.color,
            seconds_left=max(0.0, round(bubble.expires_at - now, 2)),
            hovered=hovered,
        )


@dataclass(frozen=True)
class EncounterDisplaySnapshot:
    """Everything an operator view needs in one object."""

    phase: str
    epoch: int
    session: SessionDisplaySnapshot | None
    participants: dict[str, ParticipantDisplaySnapshot]
    bubbles: tuple[BubbleDisplaySnapshot, ...]
    transcript: tuple[TurnDisplaySnapshot, ...]


def _turn_snapshot(turn: DialogueTurn, participants: list[Participant]) -> TurnDisplaySnapshot:
    names = {p.id: p.display_name for p in participants}
    return TurnDisplaySnapshot(
        speaker_id=turn.speaker_id,
        speaker_name=names.get(turn.speaker_id, turn.speaker_id),
        text=turn.text,
        kind=turn.kind.value,
    )


def transcript_snapshot(
    turns: tuple[DialogueTurn, ...],
    participants: list[Participant],
) -> tuple[TurnDisplaySnapshot, ...]:
    return tuple(_turn_snapshot(t, participants) for t in turns)
