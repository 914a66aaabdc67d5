"""
Encounter settings.

Every tunable of the encounter engine lives on EncounterSettings. Defaults
match the live ClawCraft world; tests build their own instances with tiny
durations.

Usage:
    from clawcraft.config import load_settings
    settings = load_settings(Path("encounters.yaml"))  # file is optional

Environment overrides use the CLAWCRAFT_ prefix, e.g.
CLAWCRAFT_ENGAGEMENT_CHANCE=1.0 or CLAWCRAFT_CANDIDATE_MODELS=a,b.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "CLAWCRAFT_"

# Discord channel for casual persona conversations
CASUAL_CONVERSATIONS_CHANNEL = "1470956181936668885"


class EncounterSettings(BaseModel):
    """Tunables for proximity, gating, pacing and collaborators."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # --- Proximity and gating ---
    proximity_threshold: float = Field(default=2.0, gt=0)
    engagement_chance: float = Field(default=0.4, ge=0.0, le=1.0)
    join_chance: float = Field(default=0.4, ge=0.0, le=1.0)
    max_participants: int = Field(default=4, ge=2)
    cooldown_seconds: float = Field(default=300.0, ge=0)
    # Re-check cooldown for the enlarged set before admitting a joiner
    join_requires_cooldown: bool = False

    # --- Session timing ---
    max_conversation_seconds: float = Field(default=60.0, gt=0)
    awkward_silence_seconds: float = Field(default=10.0, gt=0)
    generation_timeout_seconds: float = Field(default=8.0, gt=0)
    memory_timeout_seconds: float = Field(default=1.0, gt=0)
    silence_grace_seconds: float = Field(default=1.5, ge=0)
    transcript_grace_seconds: float = Field(default=5.0, ge=0)
    turn_gap_seconds: float = Field(default=0.5, ge=0)
    health_check_interval_seconds: float = Field(default=5.0, gt=0)
    tick_interval_seconds: float = Field(default=0.1, gt=0)

    # --- Bubbles ---
    bubble_base_seconds: float = Field(default=1.5, ge=0)
    bubble_seconds_per_char: float = Field(default=0.05, ge=0)
    bubble_min_seconds: float = Field(default=2.5, ge=0)
    bubble_max_seconds: float = Field(default=8.0, ge=0)
    hover_release_seconds: float = Field(default=0.3, ge=0)

    # --- Memory ---
    memory_records_per_pair: int = Field(default=5, ge=1)
    memory_turns_per_record: int = Field(default=4, ge=1)

    # --- Collaborators ---
    generation_url: str = "http://localhost:3001/api/conversation"
    memory_url: str = "http://localhost:3001/api"
    relay_url: str = "http://localhost:3001/api/discord/post"
    relay_channel_id: str = CASUAL_CONVERSATIONS_CHANNEL
    candidate_models: tuple[str, ...] = (
        "claude-haiku-4-5-20251001",
        "claude-sonnet-4-5-20250929",
    )
    generation_max_tokens: int = Field(default=700, gt=0)

    @model_validator(mode="after")
    def _check_budgets(self) -> EncounterSettings:
        if self.bubble_min_seconds > self.bubble_max_seconds:
            raise ValueError("bubble_min_seconds must not exceed bubble_max_seconds")
        # Memory lookup and generation run back to back before content lands
        if self.memory_timeout_seconds + self.generation_timeout_seconds >= self.awkward_silence_seconds:
            raise ValueError(
                "memory_timeout_seconds + generation_timeout_seconds must be below awkward_silence_seconds"
            )
        if self.awkward_silence_seconds >= self.max_conversation_seconds:
            raise ValueError("awkward_silence_seconds must be below max_conversation_seconds")
        if not self.candidate_models:
            raise ValueError("candidate_models must name at least one model")
        return self


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect CLAWCRAFT_* variables that name a settings field."""
    overrides: dict[str, Any] = {}
    for name in EncounterSettings.model_fields:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        if name == "candidate_models":
            overrides[name] = tuple(m.strip() for m in raw.split(",") if m.strip())
        else:
            overrides[name] = raw
    return overrides


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> EncounterSettings:
    """
    Load settings from an optional YAML file plus environment overrides.

    Args:
        path: YAML file with a mapping of field -> value (missing file is an error)
        environ: Environment to read overrides from (default: os.environ)

    Returns:
        Validated, frozen settings

    Raises:
        pydantic.ValidationError: If a value is out of range or unknown
    """
    data: dict[str, Any] = {}
    if path is not None:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        data.update(loaded)
        logger.debug(f"Loaded {len(loaded)} setting(s) from {path}")

    overrides = _env_overrides(os.environ if environ is None else environ)
    if overrides:
        logger.debug(f"Applying environment overrides: {sorted(overrides)}")
    data.update(overrides)

    return EncounterSettings(**data)
