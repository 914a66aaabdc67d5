"""
Adapters layer - external integrations.

This layer provides:
- Claude dialogue backend (Anthropic API, LangSmith-traced) and its prompts
- HTTP clients for the ClawCraft backend (generation, memory, relay)
- Local relay sinks (pending queue, JSONL archive)
"""

from .prompt_builder import DialoguePromptBuilder
from .claude_backend import ClaudeDialogueBackend, GenerationBackendError
from .http_clients import HttpGenerationClient, HttpMemoryStore, HttpRelaySink
from .relay_sinks import QueueRelaySink, JsonlRelaySink

__all__ = [
    "DialoguePromptBuilder",
    "ClaudeDialogueBackend",
    "GenerationBackendError",
    "HttpGenerationClient",
    "HttpMemoryStore",
    "HttpRelaySink",
    "QueueRelaySink",
    "JsonlRelaySink",
]
