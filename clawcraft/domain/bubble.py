from pydantic import BaseModel, ConfigDict

from .types import ParticipantId


class SpeechBubble(BaseModel):
    """A transient bubble above a participant. One per participant at a time."""
    model_config = ConfigDict(frozen=True)

    participant_id: ParticipantId
    text: str
    color: str
    expires_at: float  # monotonic seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
