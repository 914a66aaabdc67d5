from .chance import ChanceSource, RandomChance, FixedChance
from .cooldown import CooldownLedger
from .timers import EpochTimers
from .bubbles import BubbleScheduler
from .dialogue_parser import (
    DialogueLine,
    ParseResult,
    strip_code_fences,
    find_array_bounds,
    repair_truncated_json,
    parse_dialogue,
)
from .memory import MemoryStore, InMemoryMemoryStore, build_record, summarize_memory
from .fallback import ScriptedDialogue, SCRIPTED_TEMPLATES, GENERIC_INSIGHTS
from .content import ContentGenerator, DialogueClient, DialogueRequest, GeneratedDialogue
from .join import JoinCoordinator, JoinDecision
from .relay import NotificationRelay, RelaySink, TranscriptMessage, format_transcript
from .proximity import ProximityDetector
from .persona_registry import PersonaRegistry, DEFAULT_PERSONAS, PERSONA_VOICES

__all__ = [
    "ChanceSource",
    "RandomChance",
    "FixedChance",
    "CooldownLedger",
    "EpochTimers",
    "BubbleScheduler",
    "DialogueLine",
    "ParseResult",
    "strip_code_fences",
    "find_array_bounds",
    "repair_truncated_json",
    "parse_dialogue",
    "MemoryStore",
    "InMemoryMemoryStore",
    "build_record",
    "summarize_memory",
    "ScriptedDialogue",
    "SCRIPTED_TEMPLATES",
    "GENERIC_INSIGHTS",
    "ContentGenerator",
    "DialogueClient",
    "DialogueRequest",
    "GeneratedDialogue",
    "JoinCoordinator",
    "JoinDecision",
    "NotificationRelay",
    "RelaySink",
    "TranscriptMessage",
    "format_transcript",
    "ProximityDetector",
    "PersonaRegistry",
    "DEFAULT_PERSONAS",
    "PERSONA_VOICES",
]
