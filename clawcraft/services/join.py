"""
Join coordinator - decides whether a passer-by joins a conversation.

Joining is only possible once dialogue has actually begun, and not every
nearby persona stops: acceptance is a coin flip.

Cooldown policy: by default joins are free (the enlarged set is not checked
against the cooldown ledger). Set `requires_cooldown` to re-validate the
enlarged set before the coin flip.
"""

from __future__ import annotations

import logging
from enum import Enum

from clawcraft.domain import ConversationSession, Participant

from .chance import ChanceSource
from .cooldown import CooldownLedger

logger = logging.getLogger(__name__)


class JoinDecision(Enum):
    ACCEPTED = "accepted"
    NOT_TALKING_YET = "not_talking_yet"
    ALREADY_PARTICIPANT = "already_participant"
    SESSION_FULL = "session_full"
    COOLDOWN = "cooldown"
    WALKED_PAST = "walked_past"

    @property
    def accepted(self) -> bool:
        return self is JoinDecision.ACCEPTED


class JoinCoordinator:
    """Gatekeeper for late arrivals. Does not mutate the session."""

    def __init__(
        self,
        chance: ChanceSource,
        join_chance: float = 0.4,
        max_participants: int = 4,
        cooldowns: CooldownLedger | None = None,
        requires_cooldown: bool = False,
    ):
        if requires_cooldown and cooldowns is None:
            raise ValueError("requires_cooldown needs a cooldown ledger")
        self._chance = chance
        self._join_chance = join_chance
        self._max_participants = max_participants
        self._cooldowns = cooldowns
        self._requires_cooldown = requires_cooldown

    @property
    def max_participants(self) -> int:
        return self._max_participants

    def evaluate(self, candidate: Participant, session: ConversationSession) -> JoinDecision:
        """Check preconditions, then flip the coin."""
        if not session.is_talking:
            return JoinDecision.NOT_TALKING_YET
        if session.has_participant(candidate.id):
            return JoinDecision.ALREADY_PARTICIPANT
        if len(session.participants) >= self._max_participants:
            return JoinDecision.SESSION_FULL
        if self._requires_cooldown:
            enlarged = [*session.participant_ids, candidate.id]
            if not self._cooldowns.can_engage(enlarged):
                return JoinDecision.COOLDOWN
        if not self._chance.roll(self._join_chance):
            return JoinDecision.WALKED_PAST
        return JoinDecision.ACCEPTED

    def try_join(self, candidate: Participant, session: ConversationSession) -> bool:
        decision = self.evaluate(candidate, session)
        logger.debug(f"Join {candidate.id} -> {session.id}: {decision.value}")
        return decision.accepted
