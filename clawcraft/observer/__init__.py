"""
Observer layer - operator interface to encounters.

Provides:
- ObserverAPI: Query/command interface for the CLI and tooling
- Display snapshots: Read-only views of encounter state
"""

from .snapshots import (
    BubbleDisplaySnapshot,
    EncounterDisplaySnapshot,
    ParticipantDisplaySnapshot,
    SessionDisplaySnapshot,
    TurnDisplaySnapshot,
)
from .api import (
    ObserverAPI,
    ObserverError,
    NoActiveSessionError,
    ParticipantNotFoundError,
)

__all__ = [
    "ObserverAPI",
    "ObserverError",
    "NoActiveSessionError",
    "ParticipantNotFoundError",
    "BubbleDisplaySnapshot",
    "EncounterDisplaySnapshot",
    "ParticipantDisplaySnapshot",
    "SessionDisplaySnapshot",
    "TurnDisplaySnapshot",
]
