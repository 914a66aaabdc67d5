"""Conversation domain models for ClawCraft encounters.

Defines the types flowing through an encounter:
- DialogueTurn: one line of dialogue (immutable once generated)
- ConversationRecord: the memory unit stored per participant pair
- SessionPhase / EndReason: lifecycle vocabulary
- ConversationSession: the live, mutable aggregate owned by the engine

Key design decisions:
- The session is the only mutable model; everything it holds is frozen
- Phase changes go through transition(), which rejects illegal edges
- first_turn_displayed_at distinguishes "negotiating" from "actually talking"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .participant import Participant
from .types import PairKey, ParticipantId, SessionId, make_pair_key

# How many turns of a conversation are kept in memory
MEMORY_TURNS_PER_RECORD = 4
# How many records are kept per pair before the oldest is evicted
MEMORY_RECORDS_PER_PAIR = 5


class TurnKind(Enum):
    DIALOGUE = "dialogue"
    JOIN = "join"          # synthetic "X joins" line
    SILENCE = "silence"    # awkward-silence marker


class DialogueTurn(BaseModel):
    """A single line in a conversation."""

    model_config = ConfigDict(frozen=True)

    speaker_id: ParticipantId
    text: str
    kind: TurnKind = TurnKind.DIALOGUE

    @property
    def is_dialogue(self) -> bool:
        return self.kind == TurnKind.DIALOGUE


class ConversationRecord(BaseModel):
    """What a pair remembers about one past conversation."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    participant_ids: tuple[ParticipantId, ...]
    turns: tuple[DialogueTurn, ...] = Field(default_factory=tuple)

    @property
    def pair_key(self) -> PairKey:
        return make_pair_key(self.participant_ids)


class SessionPhase(Enum):
    """Lifecycle phase of the encounter slot."""

    IDLE = "idle"
    AWAITING_CONTENT = "awaiting_content"
    PLAYING = "playing"
    ENDING = "ending"


class EndReason(Enum):
    """Why a session left the non-idle phases."""

    COMPLETED = "completed"
    AWKWARD_SILENCE = "awkward_silence"
    TIMEOUT = "timeout"
    FORCED = "forced"
    STUCK = "stuck"
    ERROR = "error"


ALLOWED_TRANSITIONS: dict[SessionPhase, frozenset[SessionPhase]] = {
    SessionPhase.IDLE: frozenset({SessionPhase.AWAITING_CONTENT}),
    SessionPhase.AWAITING_CONTENT: frozenset({
        SessionPhase.PLAYING,
        SessionPhase.ENDING,
        SessionPhase.IDLE,
    }),
    SessionPhase.PLAYING: frozenset({SessionPhase.ENDING}),
    SessionPhase.ENDING: frozenset({SessionPhase.IDLE}),
}


class InvalidTransitionError(Exception):
    """Raised when a session is asked to make an illegal phase change."""

    def __init__(self, current: SessionPhase, target: SessionPhase):
        super().__init__(f"Cannot transition from {current.value} to {target.value}")
        self.current = current
        self.target = target


@dataclass
class ConversationSession:
    """
    The live encounter.

    Mutated by the engine only: content arrival appends turns, joins grow
    the participant list, playback moves the phase forward. The epoch ties
    timers and background work to this particular session.
    """

    id: SessionId
    epoch: int
    participants: list[Participant]
    started_at: float  # monotonic seconds
    phase: SessionPhase = SessionPhase.AWAITING_CONTENT
    turns: list[DialogueTurn] = field(default_factory=list)
    first_turn_displayed_at: float | None = None
    content_source: str | None = None  # "generated" | "fallback" once content arrives
    founding_ids: tuple[ParticipantId, ...] = ()

    def __post_init__(self) -> None:
        if not self.founding_ids:
            self.founding_ids = tuple(p.id for p in self.participants)

    # --- Queries ---

    @property
    def participant_ids(self) -> tuple[ParticipantId, ...]:
        return tuple(p.id for p in self.participants)

    @property
    def pair_key(self) -> PairKey:
        """Key for the founding pair (cooldown and memory)."""
        return make_pair_key(self.founding_ids)

    @property
    def has_joiners(self) -> bool:
        return len(self.participants) > len(self.founding_ids)

    @property
    def is_talking(self) -> bool:
        """True once dialogue has actually begun."""
        return self.phase == SessionPhase.PLAYING and self.first_turn_displayed_at is not None

    @property
    def dialogue_turns(self) -> list[DialogueTurn]:
        return [t for t in self.turns if t.is_dialogue]

    def has_participant(self, participant_id: ParticipantId) -> bool:
        return participant_id in self.participant_ids

    def get_participant(self, participant_id: ParticipantId) -> Participant | None:
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        return None

    def elapsed(self, now: float) -> float:
        return now - self.started_at

    # --- Commands ---

    def transition(self, target: SessionPhase) -> None:
        """Move to a new phase, rejecting edges not in ALLOWED_TRANSITIONS."""
        if target not in ALLOWED_TRANSITIONS[self.phase]:
            raise InvalidTransitionError(self.phase, target)
        self.phase = target

    def add_turn(self, turn: DialogueTurn) -> None:
        self.turns.append(turn)

    def add_participant(self, participant: Participant) -> None:
        if self.has_participant(participant.id):
            return
        self.participants.append(participant)
