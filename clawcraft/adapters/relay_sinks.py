"""
Local relay sinks.

QueueRelaySink holds transcripts until a gateway polls for them, the way the
Discord bridge picks up queued posts. JsonlRelaySink appends each transcript
to a JSONL archive.
"""

from __future__ import annotations

import logging
from collections import deque
from pathlib import Path

import aiofiles

from clawcraft.services import TranscriptMessage

logger = logging.getLogger(__name__)


class QueueRelaySink:
    """In-process pending-message queue, drained by a poller."""

    name = "queue"

    def __init__(self, max_pending: int = 100):
        self._pending: deque[TranscriptMessage] = deque(maxlen=max_pending)

    def __len__(self) -> int:
        return len(self._pending)

    async def deliver(self, message: TranscriptMessage) -> None:
        if len(self._pending) == self._pending.maxlen:
            logger.warning(f"Relay queue full, dropping oldest of {len(self._pending)} pending")
        self._pending.append(message)
        logger.debug(f"Queued transcript for channel {message.channel_id}")

    def take_pending(self) -> list[TranscriptMessage]:
        """Return and clear all pending messages, oldest first."""
        messages = list(self._pending)
        self._pending.clear()
        return messages


class JsonlRelaySink:
    """Append-only JSONL archive of posted transcripts."""

    name = "jsonl"

    def __init__(self, path: Path | str):
        self.path = Path(path)

    async def deliver(self, message: TranscriptMessage) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.path, "a", encoding="utf-8") as f:
            await f.write(message.model_dump_json() + "\n")

    async def read_all(self) -> list[TranscriptMessage]:
        """Read the archive back (debugging and tests)."""
        if not self.path.exists():
            return []
        messages = []
        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            async for line in f:
                line = line.strip()
                if line:
                    messages.append(TranscriptMessage.model_validate_json(line))
        return messages
