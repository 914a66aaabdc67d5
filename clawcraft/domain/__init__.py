"""Domain models for ClawCraft encounters.

Pure data with no I/O. Everything is a frozen pydantic model except
ConversationSession, the single mutable aggregate owned by the engine.

Usage:
    from clawcraft.domain import Participant, DialogueTurn, SessionPhase
"""

from .types import (
    ParticipantId,
    SessionId,
    PairKey,
    Position,
    MovementStatus,
    make_pair_key,
)
from .participant import Participant
from .conversation import (
    MEMORY_TURNS_PER_RECORD,
    MEMORY_RECORDS_PER_PAIR,
    ALLOWED_TRANSITIONS,
    TurnKind,
    DialogueTurn,
    ConversationRecord,
    SessionPhase,
    EndReason,
    InvalidTransitionError,
    ConversationSession,
)
from .bubble import SpeechBubble
from .events import (
    SessionStartedEvent,
    ContentReadyEvent,
    TurnDisplayedEvent,
    ParticipantJoinedEvent,
    SessionEndedEvent,
    EncounterEvent,
)

__all__ = [
    # Types
    "ParticipantId",
    "SessionId",
    "PairKey",
    "Position",
    "MovementStatus",
    "make_pair_key",
    # Participant
    "Participant",
    # Conversation
    "MEMORY_TURNS_PER_RECORD",
    "MEMORY_RECORDS_PER_PAIR",
    "ALLOWED_TRANSITIONS",
    "TurnKind",
    "DialogueTurn",
    "ConversationRecord",
    "SessionPhase",
    "EndReason",
    "InvalidTransitionError",
    "ConversationSession",
    # Bubbles
    "SpeechBubble",
    # Events
    "SessionStartedEvent",
    "ContentReadyEvent",
    "TurnDisplayedEvent",
    "ParticipantJoinedEvent",
    "SessionEndedEvent",
    "EncounterEvent",
]
