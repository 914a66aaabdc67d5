"""Shared pytest fixtures for encounter tests."""

import asyncio
from typing import Callable

import pytest

from clawcraft.config import EncounterSettings
from clawcraft.domain import (
    ConversationSession,
    DialogueTurn,
    Participant,
    ParticipantId,
    SessionId,
)
from clawcraft.engine import EncounterEngine
from clawcraft.services import (
    ContentGenerator,
    FixedChance,
    NotificationRelay,
    PersonaRegistry,
    ScriptedDialogue,
)
from clawcraft.adapters import QueueRelaySink


# =============================================================================
# Time
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until predicate() holds, failing the test after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def wait_until():
    """Async helper: await wait_until(lambda: ..., timeout=...)."""
    return _wait_until


# =============================================================================
# Participants
# =============================================================================


@pytest.fixture
def registry() -> PersonaRegistry:
    return PersonaRegistry()


@pytest.fixture
def naval(registry: PersonaRegistry) -> Participant:
    return registry.get("naval")


@pytest.fixture
def munger(registry: PersonaRegistry) -> Participant:
    return registry.get("munger")


@pytest.fixture
def feynman(registry: PersonaRegistry) -> Participant:
    return registry.get("feynman")


@pytest.fixture
def sample_turns() -> tuple[DialogueTurn, ...]:
    return (
        DialogueTurn(speaker_id=ParticipantId("naval"), text="Play long-term games."),
        DialogueTurn(speaker_id=ParticipantId("munger"), text="With long-term people."),
        DialogueTurn(speaker_id=ParticipantId("naval"), text="Exactly."),
    )


@pytest.fixture
def session(naval: Participant, munger: Participant) -> ConversationSession:
    """A fresh session for naval and munger, awaiting content."""
    return ConversationSession(
        id=SessionId("sess-001"),
        epoch=0,
        participants=[naval, munger],
        started_at=1000.0,
    )


# =============================================================================
# Settings and Engine
# =============================================================================


@pytest.fixture
def fast_settings() -> EncounterSettings:
    """Tiny durations: each bubble lasts 10ms and turns follow immediately."""
    return EncounterSettings(
        engagement_chance=1.0,
        join_chance=1.0,
        cooldown_seconds=300.0,
        max_conversation_seconds=2.0,
        awkward_silence_seconds=0.2,
        generation_timeout_seconds=0.05,
        memory_timeout_seconds=0.05,
        silence_grace_seconds=0.02,
        transcript_grace_seconds=5.0,
        turn_gap_seconds=0.0,
        bubble_base_seconds=0.0,
        bubble_seconds_per_char=0.0,
        bubble_min_seconds=0.01,
        bubble_max_seconds=0.01,
        hover_release_seconds=0.0,
    )


@pytest.fixture
def slow_settings(fast_settings: EncounterSettings) -> EncounterSettings:
    """Like fast_settings but each turn stays up for 200ms."""
    return fast_settings.model_copy(update={
        "bubble_min_seconds": 0.2,
        "bubble_max_seconds": 0.2,
    })


@pytest.fixture
def chance() -> FixedChance:
    """Every gate passes; scripted content uses the first template."""
    return FixedChance(outcome=True, index=0)


@pytest.fixture
def relay_sink() -> QueueRelaySink:
    return QueueRelaySink()


def build_engine(
    settings: EncounterSettings,
    registry: PersonaRegistry,
    chance: FixedChance,
    sink: QueueRelaySink,
    client=None,
    memory=None,
) -> EncounterEngine:
    generator = ContentGenerator(
        client=client,
        scripts=ScriptedDialogue(chance),
        memory=memory,
        timeout_seconds=settings.generation_timeout_seconds,
        memory_timeout_seconds=settings.memory_timeout_seconds,
    )
    return EncounterEngine(
        settings=settings,
        registry=registry,
        generator=generator,
        relay=NotificationRelay([sink], settings.relay_channel_id),
        chance=chance,
    )


@pytest.fixture
def engine(fast_settings, registry, chance, relay_sink) -> EncounterEngine:
    """Scripted-content engine where every gate passes."""
    return build_engine(fast_settings, registry, chance, relay_sink)


@pytest.fixture
def slow_engine(slow_settings, registry, chance, relay_sink) -> EncounterEngine:
    return build_engine(slow_settings, registry, chance, relay_sink)


@pytest.fixture
def engine_factory(registry, chance, relay_sink):
    """Build an engine with custom settings or a custom dialogue client."""
    def factory(settings: EncounterSettings, client=None, memory=None) -> EncounterEngine:
        return build_engine(settings, registry, chance, relay_sink, client=client, memory=memory)
    return factory
