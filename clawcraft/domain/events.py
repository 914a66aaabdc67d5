from datetime import datetime
from typing import Annotated, Literal, Union
from pydantic import BaseModel, ConfigDict, Discriminator, Field
from .conversation import DialogueTurn, EndReason
from .types import ParticipantId, SessionId

# Events are emitted to subscribers (renderers, loggers, the CLI).
# They describe what happened; nothing reads them back into engine state.


class SessionStartedEvent(BaseModel):
    """Two participants stopped to talk."""
    model_config = ConfigDict(frozen=True)
    type: Literal["session_started"] = "session_started"
    timestamp: datetime = Field(default_factory=datetime.now)

    session_id: SessionId
    participants: tuple[ParticipantId, ...]


class ContentReadyEvent(BaseModel):
    """Dialogue for the session arrived (generated or scripted)."""
    model_config = ConfigDict(frozen=True)
    type: Literal["content_ready"] = "content_ready"
    timestamp: datetime = Field(default_factory=datetime.now)

    session_id: SessionId
    source: Literal["generated", "fallback"]
    turn_count: int


class TurnDisplayedEvent(BaseModel):
    """A turn was put on screen."""
    model_config = ConfigDict(frozen=True)
    type: Literal["turn_displayed"] = "turn_displayed"
    timestamp: datetime = Field(default_factory=datetime.now)

    session_id: SessionId
    turn: DialogueTurn
    color: str
    display_seconds: float


class ParticipantJoinedEvent(BaseModel):
    """A passer-by joined the conversation."""
    model_config = ConfigDict(frozen=True)
    type: Literal["participant_joined"] = "participant_joined"
    timestamp: datetime = Field(default_factory=datetime.now)

    session_id: SessionId
    participant: ParticipantId
    participant_count: int


class SessionEndedEvent(BaseModel):
    """The session was released and the slot is idle again."""
    model_config = ConfigDict(frozen=True)
    type: Literal["session_ended"] = "session_ended"
    timestamp: datetime = Field(default_factory=datetime.now)

    session_id: SessionId
    reason: EndReason
    participants: tuple[ParticipantId, ...]
    turns_displayed: int
    duration_seconds: float


EncounterEvent = Annotated[
    Union[
        SessionStartedEvent,
        ContentReadyEvent,
        TurnDisplayedEvent,
        ParticipantJoinedEvent,
        SessionEndedEvent,
    ],
    Discriminator("type"),
]
