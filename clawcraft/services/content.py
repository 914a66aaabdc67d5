"""
Content generator - dialogue for an encounter, always.

Pipeline:
1. Look up pair memory (best effort, bounded)
2. One generation call with a timeout
3. Tolerant parse with truncation repair
4. Scripted fallback on any failure along the way
5. Persist generated turns to memory in the background

generate() never raises for backend, parse or memory problems: every
failure degrades to scripted content.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

from clawcraft.domain import (
    MEMORY_TURNS_PER_RECORD,
    ConversationRecord,
    DialogueTurn,
    PairKey,
    Participant,
    ParticipantId,
    make_pair_key,
)
from clawcraft.logging_config import log_generation

from .dialogue_parser import DialogueLine, parse_dialogue
from .fallback import ScriptedDialogue
from .memory import MemoryStore

logger = logging.getLogger(__name__)


class DialogueRequest(BaseModel):
    """What a generation backend is given."""

    model_config = ConfigDict(frozen=True)

    participant1: Participant
    participant2: Participant
    memory: tuple[ConversationRecord, ...] = Field(default_factory=tuple)

    @property
    def pair_key(self) -> PairKey:
        return make_pair_key([self.participant1.id, self.participant2.id])


class DialogueClient(Protocol):
    """A generation backend. Returns the raw response text; may raise."""

    async def request_dialogue(self, request: DialogueRequest) -> str:
        ...


@dataclass(frozen=True)
class GeneratedDialogue:
    """Turns plus where they came from."""

    turns: tuple[DialogueTurn, ...]
    source: Literal["generated", "fallback"]
    repaired: bool = False


class ContentGenerator:
    """Produces dialogue for a pair with layered fallback."""

    def __init__(
        self,
        client: DialogueClient | None,
        scripts: ScriptedDialogue,
        memory: MemoryStore | None = None,
        timeout_seconds: float = 8.0,
        memory_timeout_seconds: float = 1.0,
        memory_turns: int = MEMORY_TURNS_PER_RECORD,
    ):
        self._client = client
        self._scripts = scripts
        self._memory = memory
        self._timeout = timeout_seconds
        self._memory_timeout = memory_timeout_seconds
        self._memory_turns = memory_turns
        self._background: set[asyncio.Task] = set()

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    async def generate(self, p1: Participant, p2: Participant) -> tuple[DialogueTurn, ...]:
        """Dialogue turns for the pair, generated or scripted."""
        result = await self.generate_with_source(p1, p2)
        return result.turns

    async def generate_with_source(self, p1: Participant, p2: Participant) -> GeneratedDialogue:
        """Like generate(), also reporting whether the content was generated."""
        try:
            return await self._generate(p1, p2)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Bugs in our own pipeline still must not cost the encounter
            logger.error(f"Content pipeline error for {p1.id}/{p2.id}: {e}", exc_info=True)
            return self._fallback(p1, p2)

    async def _generate(self, p1: Participant, p2: Participant) -> GeneratedDialogue:
        pair_key = make_pair_key([p1.id, p2.id])
        if self._client is None:
            log_generation(logger, pair_key, "no client, using scripted dialogue")
            return self._fallback(p1, p2)

        memory = await self._load_memory(pair_key)

        request = DialogueRequest(participant1=p1, participant2=p2, memory=tuple(memory))
        start = time.monotonic()
        try:
            raw = await asyncio.wait_for(self._client.request_dialogue(request), timeout=self._timeout)
        except asyncio.TimeoutError:
            log_generation(logger, pair_key, "timeout", details=f"limit={self._timeout}s")
            return self._fallback(p1, p2)
        except Exception as e:
            logger.warning(f"Generation failed for {pair_key}: {e}")
            return self._fallback(p1, p2)
        duration_ms = int((time.monotonic() - start) * 1000)

        parsed = parse_dialogue(raw)
        if not parsed.ok:
            log_generation(logger, pair_key, "unparsable", duration_ms, details=parsed.error)
            return self._fallback(p1, p2)

        turns = self._resolve_speakers(parsed.lines, p1, p2)
        log_generation(
            logger,
            pair_key,
            "ok",
            duration_ms,
            details=f"turns={len(turns)} repaired={parsed.repaired}",
        )
        self._remember(pair_key, (p1.id, p2.id), turns)
        return GeneratedDialogue(turns=turns, source="generated", repaired=parsed.repaired)

    def _fallback(self, p1: Participant, p2: Participant) -> GeneratedDialogue:
        return GeneratedDialogue(turns=self._scripts.build(p1, p2), source="fallback")

    @staticmethod
    def _resolve_speakers(
        lines: tuple[DialogueLine, ...],
        p1: Participant,
        p2: Participant,
    ) -> tuple[DialogueTurn, ...]:
        """Map speaker labels to ids: id, then display name, else the second participant."""
        lookup: dict[str, ParticipantId] = {}
        for participant in (p2, p1):
            lookup[participant.id.lower()] = participant.id
            lookup[participant.display_name.lower()] = participant.id
        return tuple(
            DialogueTurn(speaker_id=lookup.get(line.speaker.lower(), p2.id), text=line.text)
            for line in lines
        )

    # --- Memory (best effort) ---

    async def _load_memory(self, pair_key: PairKey) -> list[ConversationRecord]:
        if self._memory is None:
            return []
        try:
            return await asyncio.wait_for(self._memory.get(pair_key), timeout=self._memory_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Memory lookup failed for {pair_key}: {e!r}")
            return []

    def _remember(
        self,
        pair_key: PairKey,
        participant_ids: tuple[ParticipantId, ...],
        turns: tuple[DialogueTurn, ...],
    ) -> None:
        if self._memory is None:
            return
        task = asyncio.create_task(self._persist(pair_key, participant_ids, turns[: self._memory_turns]))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _persist(
        self,
        pair_key: PairKey,
        participant_ids: tuple[ParticipantId, ...],
        turns: tuple[DialogueTurn, ...],
    ) -> None:
        try:
            await self._memory.append(pair_key, participant_ids, turns)
        except Exception as e:
            logger.debug(f"Memory write failed for {pair_key}: {e!r}")

    async def drain(self) -> None:
        """Wait for pending memory writes."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
