"""
Conversation memory - what each pair remembers about past encounters.

MemoryStore is the contract the content generator relies on. All stores keep
at most `records_per_pair` records per pair (oldest evicted) and at most
`turns_per_record` turns per record.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol, Sequence

from clawcraft.domain import (
    MEMORY_RECORDS_PER_PAIR,
    MEMORY_TURNS_PER_RECORD,
    ConversationRecord,
    DialogueTurn,
    PairKey,
    ParticipantId,
)

logger = logging.getLogger(__name__)


class MemoryStore(Protocol):
    """Pair-keyed conversation memory."""

    async def get(self, pair_key: PairKey) -> list[ConversationRecord]:
        """Records for the pair, oldest first."""
        ...

    async def append(
        self,
        pair_key: PairKey,
        participant_ids: Sequence[ParticipantId],
        turns: Sequence[DialogueTurn],
    ) -> None:
        """Store a new record, evicting the oldest past the cap."""
        ...


def build_record(
    participant_ids: Sequence[ParticipantId],
    turns: Sequence[DialogueTurn],
    turns_per_record: int = MEMORY_TURNS_PER_RECORD,
    timestamp: datetime | None = None,
) -> ConversationRecord:
    """Build the stored form of a conversation (first N dialogue turns only)."""
    dialogue = [t for t in turns if t.is_dialogue][:turns_per_record]
    return ConversationRecord(
        timestamp=timestamp or datetime.now(),
        participant_ids=tuple(participant_ids),
        turns=tuple(dialogue),
    )


def summarize_memory(records: Sequence[ConversationRecord], limit: int = 3) -> str:
    """Short plain-text recap of recent records, newest last."""
    lines = []
    for record in list(records)[-limit:]:
        when = record.timestamp.strftime("%Y-%m-%d %H:%M")
        said = " / ".join(f"{t.speaker_id}: {t.text}" for t in record.turns)
        lines.append(f"[{when}] {said}")
    return "\n".join(lines)


class InMemoryMemoryStore:
    """Process-local MemoryStore."""

    def __init__(
        self,
        records_per_pair: int = MEMORY_RECORDS_PER_PAIR,
        turns_per_record: int = MEMORY_TURNS_PER_RECORD,
    ):
        self._records_per_pair = records_per_pair
        self._turns_per_record = turns_per_record
        self._records: dict[PairKey, list[ConversationRecord]] = {}

    async def get(self, pair_key: PairKey) -> list[ConversationRecord]:
        return list(self._records.get(pair_key, []))

    async def append(
        self,
        pair_key: PairKey,
        participant_ids: Sequence[ParticipantId],
        turns: Sequence[DialogueTurn],
    ) -> None:
        record = build_record(participant_ids, turns, self._turns_per_record)
        records = self._records.setdefault(pair_key, [])
        records.append(record)
        if len(records) > self._records_per_pair:
            del records[: len(records) - self._records_per_pair]
        logger.debug(f"Stored memory for {pair_key} ({len(records)} record(s))")
