from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import PAIR_KEY_SEPARATOR, ParticipantId


class Participant(BaseModel):
    """A persona that can take part in an encounter.

    Identity is the id; everything else is display or flavour data.
    """
    model_config = ConfigDict(frozen=True)

    id: ParticipantId
    display_name: str
    color: str
    role: str = ""
    greeting: str = ""
    insights: tuple[str, ...] = Field(default_factory=tuple)  # canned phrases for scripted dialogue

    @field_validator("id")
    @classmethod
    def _check_id(cls, v: str) -> str:
        # Pair keys join ids with the separator, so ids must not contain it
        if not v or PAIR_KEY_SEPARATOR in v:
            raise ValueError(f"Participant id must be non-empty and must not contain {PAIR_KEY_SEPARATOR!r}: {v!r}")
        return v

    def __str__(self) -> str:
        return self.display_name
