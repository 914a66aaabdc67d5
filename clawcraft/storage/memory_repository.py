"""SQLite-backed conversation memory.

One row per remembered conversation; turns are stored as a JSON array.
Per pair, rows beyond the newest `records_per_pair` are deleted on append.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Sequence

from clawcraft.domain import (
    MEMORY_RECORDS_PER_PAIR,
    MEMORY_TURNS_PER_RECORD,
    ConversationRecord,
    DialogueTurn,
    PairKey,
    ParticipantId,
)
from clawcraft.services import build_record

from .database import Database, Row

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS conversation_memory (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    pair_key TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    participant_ids TEXT NOT NULL,
    turns TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_conversation_memory_pair
    ON conversation_memory (pair_key, id);
"""


class SqliteMemoryStore:
    """MemoryStore persisted in SQLite.

    Usage:
        async with Database(path) as db:
            store = SqliteMemoryStore(db)
            await store.initialize()
    """

    def __init__(
        self,
        db: Database,
        records_per_pair: int = MEMORY_RECORDS_PER_PAIR,
        turns_per_record: int = MEMORY_TURNS_PER_RECORD,
    ):
        self.db = db
        self._records_per_pair = records_per_pair
        self._turns_per_record = turns_per_record

    async def initialize(self) -> None:
        """Create the table if needed."""
        await self.db.apply_schema(SCHEMA)

    async def get(self, pair_key: PairKey) -> list[ConversationRecord]:
        rows = await self.db.fetch_all(
            """
            SELECT timestamp, participant_ids, turns FROM conversation_memory
            WHERE pair_key = ?
            ORDER BY id
            """,
            (pair_key,),
        )
        return [self._row_to_record(row) for row in rows]

    async def append(
        self,
        pair_key: PairKey,
        participant_ids: Sequence[ParticipantId],
        turns: Sequence[DialogueTurn],
    ) -> None:
        record = build_record(participant_ids, turns, self._turns_per_record)
        turns_json = json.dumps(
            [{"speaker": t.speaker_id, "text": t.text} for t in record.turns],
            separators=(",", ":"),
        )
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO conversation_memory (pair_key, timestamp, participant_ids, turns)
                VALUES (?, ?, ?, ?)
                """,
                (pair_key, record.timestamp.isoformat(), json.dumps(list(record.participant_ids)), turns_json),
            )
            # Keep only the newest records for the pair
            await self.db.execute(
                """
                DELETE FROM conversation_memory
                WHERE pair_key = ? AND id NOT IN (
                    SELECT id FROM conversation_memory
                    WHERE pair_key = ?
                    ORDER BY id DESC
                    LIMIT ?
                )
                """,
                (pair_key, pair_key, self._records_per_pair),
            )
        logger.debug(f"Stored memory for {pair_key}")

    @staticmethod
    def _row_to_record(row: Row) -> ConversationRecord:
        return ConversationRecord(
            timestamp=datetime.fromisoformat(row["timestamp"]),
            participant_ids=tuple(ParticipantId(p) for p in json.loads(row["participant_ids"])),
            turns=tuple(
                DialogueTurn(speaker_id=ParticipantId(t["speaker"]), text=t["text"])
                for t in json.loads(row["turns"])
            ),
        )
