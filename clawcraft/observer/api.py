"""
ObserverAPI - operator interface to the encounter engine.

All methods are either:
- Queries (get_*): Read-only, safe to call any number of times
- Commands (do_*): Change engine state, may raise ObserverError on failure
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Mapping

from clawcraft.domain import EndReason, ParticipantId, Position, SessionPhase
from clawcraft.logging_config import log_observer_cmd

from .snapshots import (
    BubbleDisplaySnapshot,
    EncounterDisplaySnapshot,
    ParticipantDisplaySnapshot,
    SessionDisplaySnapshot,
    TurnDisplaySnapshot,
    transcript_snapshot,
)

if TYPE_CHECKING:
    from clawcraft.engine import EncounterEngine

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ObserverError(Exception):
    """Base exception for Observer API errors."""

    pass


class NoActiveSessionError(ObserverError):
    """Raised when a command needs a session and the engine is idle."""

    pass


class ParticipantNotFoundError(ObserverError):
    """Raised when a participant id is not in the roster."""

    pass


# =============================================================================
# Observer API
# =============================================================================


class ObserverAPI:
    """
    Operator interactions with the encounter engine.

    Queries return display snapshots; commands go through the engine's own
    entry points so every invariant the engine enforces still holds.
    """

    def __init__(self, engine: "EncounterEngine"):
        self._engine = engine

    # =========================================================================
    # QUERIES (Read-Only)
    # =========================================================================

    def get_encounter_snapshot(self) -> EncounterDisplaySnapshot:
        """Complete encounter state for display."""
        return EncounterDisplaySnapshot(
            phase=self.get_phase().value,
            epoch=self._engine.epoch,
            session=self.get_session_snapshot(),
            participants=self.get_all_participants_snapshot(),
            bubbles=self.get_bubbles(),
            transcript=self.get_transcript(),
        )

    def get_phase(self) -> SessionPhase:
        return self._engine.phase

    def has_active_session(self) -> bool:
        return self._engine.session is not None

    def get_session_snapshot(self) -> SessionDisplaySnapshot | None:
        session = self._engine.session
        if session is None:
            return None
        return SessionDisplaySnapshot.from_domain(session, self._engine.now())

    def get_participant_snapshot(self, participant_id: str) -> ParticipantDisplaySnapshot | None:
        participant = self._engine.registry.get(participant_id)
        if participant is None:
            return None
        return ParticipantDisplaySnapshot.from_domain(
            participant,
            self._engine.status_of(participant.id),
            in_session=participant.id in self._engine.active_index,
        )

    def get_all_participants_snapshot(self) -> dict[str, ParticipantDisplaySnapshot]:
        return {
            pid: self.get_participant_snapshot(pid)
            for pid in self._engine.registry.ids()
        }

    def get_bubbles(self) -> tuple[BubbleDisplaySnapshot, ...]:
        now = self._engine.now()
        bubbles = self._engine.bubbles
        return tuple(
            BubbleDisplaySnapshot.from_domain(b, now, bubbles.is_hovered(pid))
            for pid, b in sorted(bubbles.active().items())
        )

    def get_transcript(self) -> tuple[TurnDisplaySnapshot, ...]:
        """Current session turns, or the last session's during its grace window."""
        return transcript_snapshot(self._engine.transcript(), self._engine.registry.all())

    def get_cooldown_remaining(self, *participant_ids: str) -> float:
        """Seconds until this participant set may talk again."""
        self._require_participants(participant_ids)
        return self._engine.cooldowns.remaining(participant_ids)

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def do_force_end(self) -> None:
        """
        End the active session immediately.

        Raises:
            NoActiveSessionError: If the engine is idle
        """
        session = self._engine.session
        if session is None:
            raise NoActiveSessionError("No active session to end")
        log_observer_cmd(logger, "force_end", f"session={session.id} phase={session.phase.value}")
        self._engine.force_end(EndReason.FORCED)

    def do_reset_stuck_participants(self) -> list[ParticipantId]:
        """Return orphaned talking and chatting participants to idle."""
        reset = self._engine.reset_stuck_participants(include_chatting=True)
        log_observer_cmd(logger, "reset_stuck_participants", f"reset={reset}")
        return reset

    def do_trigger_encounter(self, a_id: str, b_id: str) -> bool:
        """
        Treat two participants as having bumped into each other.

        All gates (single session, busy, cooldown, engagement chance) still
        apply. Returns True if a session started.

        Raises:
            ParticipantNotFoundError: If either id is unknown
        """
        self._require_participants((a_id, b_id))
        log_observer_cmd(logger, "trigger_encounter", f"{a_id}+{b_id}")
        return self._engine.handle_bump(a_id, b_id)

    def do_offer_join(self, participant_id: str) -> bool:
        """
        Offer a participant to the active session.

        Raises:
            ParticipantNotFoundError: If the id is unknown
            NoActiveSessionError: If the engine is idle
        """
        self._require_participants((participant_id,))
        if self._engine.session is None:
            raise NoActiveSessionError("No active session to join")
        log_observer_cmd(logger, "offer_join", participant_id)
        return self._engine.try_join(participant_id)

    def do_update_positions(self, positions: Mapping[str, Position | tuple[float, float]]) -> int:
        """Feed positions; returns how many bumps led to a session or a join."""
        self._require_participants(tuple(positions))
        return len(self._engine.update_positions(positions))

    def do_set_chatting(self, participant_id: str, chatting: bool) -> bool:
        """Mark a persona as held (or released) by a user chat panel."""
        self._require_participants((participant_id,))
        log_observer_cmd(logger, "set_chatting", f"{participant_id}={chatting}")
        return self._engine.set_chatting(participant_id, chatting)

    def do_hover(self, participant_id: str) -> None:
        """Pointer entered a participant's bubble: hold it on screen."""
        self._require_participants((participant_id,))
        self._engine.bubbles.set_hovered(ParticipantId(participant_id))

    def do_unhover(self, participant_id: str) -> None:
        """Pointer left the bubble: let it expire after the release delay."""
        self._require_participants((participant_id,))
        self._engine.bubbles.clear_hovered(
            ParticipantId(participant_id),
            self._engine.settings.hover_release_seconds,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_participants(self, participant_ids: tuple[str, ...]) -> None:
        for participant_id in participant_ids:
            if participant_id not in self._engine.registry:
                raise ParticipantNotFoundError(f"Unknown participant: {participant_id}")
