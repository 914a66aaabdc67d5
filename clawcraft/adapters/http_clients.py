"""
HTTP adapters for the ClawCraft backend.

- HttpGenerationClient: POST /api/conversation, returns the raw body text
- HttpMemoryStore:      GET/POST /api/conversations (pair-keyed memory)
- HttpRelaySink:        POST /api/discord/post (transcript queue)

Each adapter takes an optional httpx.AsyncClient (tests pass one with a
MockTransport) and creates its own on first use otherwise. Errors are raised
to the caller: the content generator and relay already treat every
collaborator failure as best effort.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from clawcraft.domain import (
    ConversationRecord,
    DialogueTurn,
    PairKey,
    ParticipantId,
)
from clawcraft.services import DialogueRequest, TranscriptMessage, build_record

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class _HttpAdapter:
    """Lazily-created shared AsyncClient."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = DEFAULT_TIMEOUT):
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


# =============================================================================
# Wire models (camelCase JSON)
# =============================================================================


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class WireTurn(_WireModel):
    speaker: str
    text: str


class WireRecord(_WireModel):
    """ConversationRecord as the backend stores it."""

    timestamp: datetime
    participant_ids: list[str] = Field(default_factory=list)
    turns: list[WireTurn] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: ConversationRecord) -> WireRecord:
        return cls(
            timestamp=record.timestamp,
            participant_ids=list(record.participant_ids),
            turns=[WireTurn(speaker=t.speaker_id, text=t.text) for t in record.turns],
        )

    def to_record(self) -> ConversationRecord:
        return ConversationRecord(
            timestamp=self.timestamp,
            participant_ids=tuple(ParticipantId(p) for p in self.participant_ids),
            turns=tuple(DialogueTurn(speaker_id=ParticipantId(t.speaker), text=t.text) for t in self.turns),
        )


class WireMemoryAppend(WireRecord):
    pair_key: str


class WireGenerationRequest(_WireModel):
    persona1_id: str
    persona2_id: str
    persona1_name: str
    persona2_name: str
    persona1_role: str
    persona2_role: str
    memory: list[WireRecord] = Field(default_factory=list)


class WireRelayPost(_WireModel):
    channel_id: str
    message: str


# =============================================================================
# Generation
# =============================================================================


class HttpGenerationClient(_HttpAdapter):
    """DialogueClient that asks the ClawCraft backend for a conversation."""

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(client, timeout)
        self._url = url

    async def request_dialogue(self, request: DialogueRequest) -> str:
        p1, p2 = request.participant1, request.participant2
        payload = WireGenerationRequest(
            persona1_id=p1.id,
            persona2_id=p2.id,
            persona1_name=p1.display_name,
            persona2_name=p2.display_name,
            persona1_role=p1.role,
            persona2_role=p2.role,
            memory=[WireRecord.from_record(r) for r in request.memory],
        )
        response = await self._ensure_client().post(self._url, json=payload.to_json_dict())
        response.raise_for_status()
        return response.text


# =============================================================================
# Memory
# =============================================================================


class HttpMemoryStore(_HttpAdapter):
    """MemoryStore backed by the backend's /conversations endpoint."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        turns_per_record: int = 4,
    ):
        super().__init__(client, timeout)
        self._base_url = base_url.rstrip("/")
        self._turns_per_record = turns_per_record

    async def get(self, pair_key: PairKey) -> list[ConversationRecord]:
        response = await self._ensure_client().get(
            f"{self._base_url}/conversations",
            params={"pair": pair_key},
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of records, got {type(data).__name__}")
        return [WireRecord.model_validate(item).to_record() for item in data]

    async def append(
        self,
        pair_key: PairKey,
        participant_ids: Sequence[ParticipantId],
        turns: Sequence[DialogueTurn],
    ) -> None:
        record = build_record(participant_ids, turns, self._turns_per_record)
        payload = WireMemoryAppend(pair_key=pair_key, **WireRecord.from_record(record).model_dump())
        response = await self._ensure_client().post(f"{self._base_url}/conversations", json=payload.to_json_dict())
        response.raise_for_status()


# =============================================================================
# Relay
# =============================================================================


class HttpRelaySink(_HttpAdapter):
    """Posts transcripts to the backend's Discord queue."""

    name = "http"

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(client, timeout)
        self._url = url

    async def deliver(self, message: TranscriptMessage) -> None:
        response = await self._ensure_client().post(
            self._url,
            json=WireRelayPost(channel_id=message.channel_id, message=message.text).to_json_dict(),
        )
        response.raise_for_status()
