"""Tests for clawcraft.domain.types and participant models."""

import pytest
from pydantic import ValidationError

from clawcraft.domain import (
    MovementStatus,
    Participant,
    ParticipantId,
    Position,
    make_pair_key,
)


class TestPairKey:
    """Tests for order-independent pair keys."""

    def test_order_independent(self):
        """Test the same ids in any order give the same key."""
        assert make_pair_key(["naval", "munger"]) == make_pair_key(["munger", "naval"])

    def test_sorted_and_joined(self):
        """Test keys are sorted ids joined with a dash."""
        assert make_pair_key(["naval", "munger", "dalio"]) == "dalio-munger-naval"

    def test_duplicates_collapsed(self):
        """Test repeated ids do not change the key."""
        assert make_pair_key(["naval", "naval", "munger"]) == "munger-naval"


class TestPosition:
    """Tests for Position."""

    def test_distance(self):
        """Test Euclidean distance."""
        assert Position(0, 0).distance_to(Position(3, 4)) == 5.0

    def test_distance_symmetric(self):
        """Test distance does not depend on direction."""
        a, b = Position(1.5, 2.0), Position(-1.0, 0.5)
        assert a.distance_to(b) == b.distance_to(a)


class TestMovementStatus:
    """Tests for MovementStatus."""

    @pytest.mark.parametrize("status,busy", [
        (MovementStatus.IDLE, False),
        (MovementStatus.WALKING, False),
        (MovementStatus.TALKING, True),
        (MovementStatus.CHATTING, True),
    ])
    def test_is_busy(self, status: MovementStatus, busy: bool):
        """Test talking and chatting count as busy."""
        assert status.is_busy is busy


class TestParticipant:
    """Tests for Participant."""

    def test_frozen(self, naval: Participant):
        """Test participants are immutable."""
        with pytest.raises(ValidationError):
            naval.display_name = "Someone Else"

    def test_str_is_display_name(self, naval: Participant):
        """Test str() shows the display name."""
        assert str(naval) == "Naval Ravikant"

    def test_defaults(self):
        """Test optional flavour fields default to empty."""
        p = Participant(id=ParticipantId("x"), display_name="X", color="#000000")
        assert p.role == ""
        assert p.greeting == ""
        assert p.insights == ()

    @pytest.mark.parametrize("bad_id", ["", "van-gogh"])
    def test_id_cannot_break_pair_keys(self, bad_id):
        """Test ids that would make ambiguous pair keys are rejected."""
        with pytest.raises(ValidationError):
            Participant(id=ParticipantId(bad_id), display_name="X", color="#000000")
