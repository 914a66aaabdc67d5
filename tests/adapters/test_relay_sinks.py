"""Tests for clawcraft.adapters.relay_sinks module."""

from pathlib import Path

import pytest

from clawcraft.adapters import JsonlRelaySink, QueueRelaySink
from clawcraft.domain import ParticipantId
from clawcraft.services import TranscriptMessage

IDS = (ParticipantId("naval"), ParticipantId("munger"))


def make_message(text: str) -> TranscriptMessage:
    return TranscriptMessage(channel_id="village", text=text, participant_ids=IDS)


class TestQueueRelaySink:
    """Tests for the pending-message queue."""

    @pytest.mark.asyncio
    async def test_take_pending_drains(self):
        """Test pending messages come out oldest first and are cleared."""
        sink = QueueRelaySink()
        await sink.deliver(make_message("one"))
        await sink.deliver(make_message("two"))

        assert [m.text for m in sink.take_pending()] == ["one", "two"]
        assert len(sink) == 0

    @pytest.mark.asyncio
    async def test_bounded(self):
        """Test the oldest message is dropped when full."""
        sink = QueueRelaySink(max_pending=2)
        for text in ("one", "two", "three"):
            await sink.deliver(make_message(text))

        assert [m.text for m in sink.take_pending()] == ["two", "three"]


class TestJsonlRelaySink:
    """Tests for the JSONL archive."""

    @pytest.mark.asyncio
    async def test_append_and_read(self, tmp_path: Path):
        """Test messages are appended one per line and read back."""
        sink = JsonlRelaySink(tmp_path / "archive" / "transcripts.jsonl")
        await sink.deliver(make_message("one"))
        await sink.deliver(make_message("two"))

        lines = sink.path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2

        messages = await sink.read_all()
        assert [m.text for m in messages] == ["one", "two"]
        assert messages[0].participant_ids == IDS

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path: Path):
        """Test reading before any delivery gives nothing."""
        assert await JsonlRelaySink(tmp_path / "none.jsonl").read_all() == []
