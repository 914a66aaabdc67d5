"""Tests for clawcraft.observer.api module."""

import pytest

from clawcraft.domain import EndReason, MovementStatus, ParticipantId, SessionEndedEvent
from clawcraft.engine import EncounterEngine
from clawcraft.observer import NoActiveSessionError, ObserverAPI, ParticipantNotFoundError


@pytest.fixture
def observer(slow_engine: EncounterEngine) -> ObserverAPI:
    return slow_engine.observer


class TestQueries:
    """Tests for read-only queries."""

    def test_observer_is_cached(self, slow_engine: EncounterEngine):
        """Test the engine hands out one observer."""
        assert slow_engine.observer is slow_engine.observer

    def test_idle_snapshot(self, observer: ObserverAPI):
        """Test an idle engine's snapshot."""
        snapshot = observer.get_encounter_snapshot()

        assert snapshot.phase == "idle"
        assert snapshot.epoch == 0
        assert snapshot.session is None
        assert snapshot.bubbles == ()
        assert snapshot.transcript == ()
        assert len(snapshot.participants) == 17
        assert snapshot.participants["naval"].status == "idle"
        assert not observer.has_active_session()

    @pytest.mark.asyncio
    async def test_active_snapshot(self, observer: ObserverAPI, slow_engine: EncounterEngine, wait_until):
        """Test the snapshot reflects a playing session."""
        observer.do_trigger_encounter("naval", "munger")
        await wait_until(lambda: observer.get_transcript() != ())

        snapshot = observer.get_encounter_snapshot()
        assert snapshot.phase == "playing"
        assert snapshot.session.participants == ("naval", "munger")
        assert snapshot.session.founding_pair == "munger-naval"
        assert snapshot.session.is_talking
        assert snapshot.session.content_source == "fallback"
        assert snapshot.participants["naval"].in_session
        assert snapshot.participants["naval"].status == "talking"
        assert snapshot.bubbles[0].participant_id == "naval"
        assert snapshot.transcript[0].speaker_name == "Naval Ravikant"
        await slow_engine.shutdown()

    def test_unknown_participant_snapshot(self, observer: ObserverAPI):
        """Test unknown ids give None."""
        assert observer.get_participant_snapshot("nobody") is None

    @pytest.mark.asyncio
    async def test_cooldown_remaining(self, observer: ObserverAPI, slow_engine: EncounterEngine):
        """Test the remaining cooldown after a session starts."""
        assert observer.get_cooldown_remaining("naval", "munger") == 0.0
        observer.do_trigger_encounter("naval", "munger")
        assert observer.get_cooldown_remaining("munger", "naval") > 299.0
        with pytest.raises(ParticipantNotFoundError):
            observer.get_cooldown_remaining("naval", "nobody")
        await slow_engine.shutdown()


class TestCommands:
    """Tests for operator commands."""

    @pytest.mark.asyncio
    async def test_force_end(self, observer: ObserverAPI, slow_engine: EncounterEngine):
        """Test force-end through the observer."""
        events = []
        slow_engine.on_event(events.append)
        observer.do_trigger_encounter("naval", "munger")

        observer.do_force_end()

        assert not observer.has_active_session()
        assert [e.reason for e in events if isinstance(e, SessionEndedEvent)] == [EndReason.FORCED]

    def test_force_end_idle(self, observer: ObserverAPI):
        """Test force-end without a session raises."""
        with pytest.raises(NoActiveSessionError):
            observer.do_force_end()

    def test_trigger_unknown(self, observer: ObserverAPI):
        """Test triggering with an unknown id raises."""
        with pytest.raises(ParticipantNotFoundError):
            observer.do_trigger_encounter("naval", "nobody")

    @pytest.mark.asyncio
    async def test_offer_join(self, observer: ObserverAPI, slow_engine: EncounterEngine, wait_until):
        """Test joins through the observer follow the engine's rules."""
        with pytest.raises(NoActiveSessionError):
            observer.do_offer_join("feynman")

        observer.do_trigger_encounter("naval", "munger")
        assert not observer.do_offer_join("feynman")

        await wait_until(lambda: observer.get_session_snapshot().is_talking)
        assert observer.do_offer_join("feynman")
        assert "feynman" in observer.get_session_snapshot().participants
        await slow_engine.shutdown()

    @pytest.mark.asyncio
    async def test_update_positions(self, observer: ObserverAPI, slow_engine: EncounterEngine):
        """Test position updates report acted bumps."""
        assert observer.do_update_positions({"naval": (0, 0), "munger": (0.5, 0.5)}) == 1
        with pytest.raises(ParticipantNotFoundError):
            observer.do_update_positions({"nobody": (0, 0)})
        await slow_engine.shutdown()

    def test_set_chatting(self, observer: ObserverAPI, slow_engine: EncounterEngine):
        """Test marking a persona as chatting."""
        assert observer.do_set_chatting("naval", True)
        assert slow_engine.status_of("naval") == MovementStatus.CHATTING
        assert observer.get_participant_snapshot("naval").status == "chatting"

    def test_reset_stuck(self, observer: ObserverAPI, slow_engine: EncounterEngine):
        """Test the reset command reports who was reset."""
        slow_engine._statuses[ParticipantId("munger")] = MovementStatus.TALKING
        assert observer.do_reset_stuck_participants() == ["munger"]

    @pytest.mark.asyncio
    async def test_reset_clears_chatting(self, observer: ObserverAPI, slow_engine: EncounterEngine):
        """Test the reset command frees chat holds but not the active session."""
        observer.do_trigger_encounter("naval", "munger")
        observer.do_set_chatting("feynman", True)

        assert observer.do_reset_stuck_participants() == ["feynman"]
        assert slow_engine.status_of("feynman") == MovementStatus.IDLE
        assert slow_engine.status_of("naval") == MovementStatus.TALKING
        await slow_engine.shutdown()

    def test_hover(self, observer: ObserverAPI, slow_engine: EncounterEngine):
        """Test hover holds a bubble and unhover releases it."""
        slow_engine.bubbles.show(ParticipantId("naval"), "Hi", "#3399ff")

        observer.do_hover("naval")
        assert observer.get_bubbles()[0].hovered

        observer.do_unhover("naval")
        assert not observer.get_bubbles()[0].hovered

        with pytest.raises(ParticipantNotFoundError):
            observer.do_hover("nobody")
