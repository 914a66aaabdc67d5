"""Tests for clawcraft.services.join module."""

import pytest

from clawcraft.domain import ConversationSession, DialogueTurn, Participant, SessionPhase
from clawcraft.services import CooldownLedger, FixedChance, JoinCoordinator, JoinDecision


def start_talking(session: ConversationSession) -> ConversationSession:
    session.transition(SessionPhase.PLAYING)
    session.add_turn(DialogueTurn(speaker_id=session.participants[0].id, text="Hello."))
    session.first_turn_displayed_at = 1001.0
    return session


class TestJoinCoordinator:
    """Tests for join decisions."""

    def test_rejected_before_first_turn(self, session: ConversationSession, feynman: Participant):
        """Test nobody joins while content is still pending."""
        coordinator = JoinCoordinator(FixedChance(True), join_chance=1.0)
        assert coordinator.evaluate(feynman, session) == JoinDecision.NOT_TALKING_YET

    def test_rejected_while_playing_without_turns(self, session: ConversationSession, feynman: Participant):
        """Test PLAYING alone is not enough; a turn must have been displayed."""
        session.transition(SessionPhase.PLAYING)
        coordinator = JoinCoordinator(FixedChance(True), join_chance=1.0)
        assert coordinator.evaluate(feynman, session) == JoinDecision.NOT_TALKING_YET

    def test_accepted_once_talking(self, session: ConversationSession, feynman: Participant):
        """Test a join is accepted once dialogue has begun and the coin lands."""
        chance = FixedChance(True)
        coordinator = JoinCoordinator(chance, join_chance=0.4)

        assert coordinator.try_join(feynman, start_talking(session))
        assert chance.rolls == [0.4]

    def test_walked_past(self, session: ConversationSession, feynman: Participant):
        """Test a failed coin flip rejects."""
        coordinator = JoinCoordinator(FixedChance(False))
        assert coordinator.evaluate(feynman, start_talking(session)) == JoinDecision.WALKED_PAST

    def test_already_participant(self, session: ConversationSession, naval: Participant):
        """Test a member cannot join again."""
        coordinator = JoinCoordinator(FixedChance(True))
        assert coordinator.evaluate(naval, start_talking(session)) == JoinDecision.ALREADY_PARTICIPANT

    def test_session_full(self, session: ConversationSession, feynman: Participant):
        """Test the participant cap."""
        chance = FixedChance(True)
        coordinator = JoinCoordinator(chance, max_participants=2)

        assert coordinator.evaluate(feynman, start_talking(session)) == JoinDecision.SESSION_FULL
        assert chance.rolls == []

    def test_does_not_mutate_session(self, session: ConversationSession, feynman: Participant):
        """Test evaluation leaves the session alone."""
        start_talking(session)
        JoinCoordinator(FixedChance(True)).try_join(feynman, session)
        assert not session.has_participant(feynman.id)


class TestJoinCooldownPolicy:
    """Tests for the optional cooldown check on the enlarged set."""

    def test_free_by_default(self, session: ConversationSession, feynman: Participant, clock):
        """Test joins ignore the ledger unless configured."""
        ledger = CooldownLedger(300, clock=clock)
        ledger.record_engagement(["naval", "munger", "feynman"])
        coordinator = JoinCoordinator(FixedChance(True), cooldowns=ledger)

        assert coordinator.try_join(feynman, start_talking(session))

    def test_enlarged_set_on_cooldown(self, session: ConversationSession, feynman: Participant, clock):
        """Test a recently-talked enlarged set is rejected when required."""
        ledger = CooldownLedger(300, clock=clock)
        ledger.record_engagement(["naval", "munger", "feynman"])
        coordinator = JoinCoordinator(FixedChance(True), cooldowns=ledger, requires_cooldown=True)

        assert coordinator.evaluate(feynman, start_talking(session)) == JoinDecision.COOLDOWN

    def test_requires_ledger(self):
        """Test requiring cooldown without a ledger is a configuration error."""
        with pytest.raises(ValueError):
            JoinCoordinator(FixedChance(True), requires_cooldown=True)
