"""
ClaudeDialogueBackend - dialogue generation via the Anthropic Messages API.

Candidate models are tried in order:
- a rate-limit error moves on to the next candidate
- a connection error moves on as well
- any other API status error is terminal
The first successful response wins. When every candidate is exhausted a
GenerationBackendError is raised; the content generator turns that into
scripted dialogue.
"""

from __future__ import annotations

import logging
import time
from typing import Sequence

import anthropic
from langsmith.wrappers import wrap_anthropic

from clawcraft.logging_config import log_generation
from clawcraft.services import DialogueRequest

from .prompt_builder import DialoguePromptBuilder

logger = logging.getLogger(__name__)

DEFAULT_MODELS = ("claude-haiku-4-5-20251001", "claude-sonnet-4-5-20250929")


class GenerationBackendError(Exception):
    """A generation backend could not produce a response."""

    def __init__(self, message: str, attempts: Sequence[str] = (), cause: Exception | None = None):
        super().__init__(message)
        self.attempts = tuple(attempts)
        self.cause = cause


class ClaudeDialogueBackend:
    """DialogueClient backed by Claude models with rate-limit failover."""

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None = None,
        models: Sequence[str] = DEFAULT_MODELS,
        max_tokens: int = 700,
        prompts: DialoguePromptBuilder | None = None,
    ):
        """
        Args:
            client: Anthropic client (created and LangSmith-wrapped on first use if None)
            models: Candidate models, most preferred first
            max_tokens: Response budget per call
            prompts: Prompt builder (default roster voices if None)
        """
        if not models:
            raise ValueError("At least one candidate model is required")
        self._client = client
        self._models = tuple(models)
        self._max_tokens = max_tokens
        self._prompts = prompts or DialoguePromptBuilder()

    @property
    def models(self) -> tuple[str, ...]:
        return self._models

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            # Wrap with LangSmith for automatic tracing (if LANGSMITH_TRACING=true)
            self._client = wrap_anthropic(anthropic.AsyncAnthropic())
        return self._client

    async def request_dialogue(self, request: DialogueRequest) -> str:
        client = self._get_client()
        system_prompt = self._prompts.build_system_prompt()
        user_prompt = self._prompts.build_user_prompt(request)

        attempts: list[str] = []
        last_error: Exception | None = None
        for model in self._models:
            attempts.append(model)
            start = time.monotonic()
            try:
                response = await client.messages.create(
                    model=model,
                    max_tokens=self._max_tokens,
                    system=system_prompt,
                    messages=[{"role": "user", "content": user_prompt}],
                )
            except anthropic.RateLimitError as e:
                log_generation(logger, request.pair_key, "rate limited", details=model)
                last_error = e
                continue
            except anthropic.APIConnectionError as e:
                log_generation(logger, request.pair_key, "connection error", details=f"{model}: {e}")
                last_error = e
                continue
            except anthropic.APIStatusError as e:
                raise GenerationBackendError(
                    f"{model} returned status {e.status_code}", attempts, e
                ) from e

            duration_ms = int((time.monotonic() - start) * 1000)
            text = "".join(
                block.text for block in response.content if getattr(block, "type", None) == "text"
            )
            log_generation(logger, request.pair_key, "response", duration_ms, details=f"model={model} chars={len(text)}")
            return text

        raise GenerationBackendError(
            f"All candidate models failed: {', '.join(attempts)}", attempts, last_error
        )
