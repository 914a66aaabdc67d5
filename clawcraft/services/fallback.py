"""
Scripted dialogue used when generation is unavailable.

Templates are pre-authored exchanges with slots for each persona's name,
role, greeting and one of their canned insight phrases. Nothing here touches
the network, so this path always succeeds.
"""

from __future__ import annotations

from typing import Literal

from clawcraft.domain import DialogueTurn, Participant

from .chance import ChanceSource, RandomChance

Slot = Literal["a", "b"]
Template = tuple[tuple[Slot, str], ...]

GENERIC_INSIGHTS = (
    "Always good to exchange ideas.",
    "The fundamentals matter more than the tactics.",
    "Most problems get simpler when you write them down.",
)

SCRIPTED_TEMPLATES: tuple[Template, ...] = (
    (
        ("a", "Hello {b_name}! Interesting running into you here."),
        ("b", "Indeed, {a_name}. Always good to exchange ideas."),
        ("a", "Perhaps we should discuss our approaches sometime."),
        ("b", "I'd like that. Until next time."),
    ),
    (
        ("a", "{b_name}! I was just thinking about something."),
        ("b", "Go on, {a_name}."),
        ("a", "{a_insight}"),
        ("b", "Interesting. The way I see it: {b_insight}"),
        ("a", "We should compare notes more often."),
    ),
    (
        ("a", "{a_greeting}"),
        ("b", "Classic {a_name}. Here's my take: {b_insight}"),
        ("a", "Fair point. {a_insight}"),
        ("b", "Let's pick this up another time."),
    ),
    (
        ("b", "{a_name}, quick question. What matters most in {a_role}?"),
        ("a", "{a_insight}"),
        ("b", "I'm not sure I agree. {b_insight}"),
        ("a", "Then we'll settle it next time we cross paths."),
    ),
)


class ScriptedDialogue:
    """Builds fallback conversations from SCRIPTED_TEMPLATES."""

    def __init__(
        self,
        chance: ChanceSource | None = None,
        templates: tuple[Template, ...] = SCRIPTED_TEMPLATES,
    ):
        if not templates:
            raise ValueError("At least one scripted template is required")
        self._chance = chance or RandomChance()
        self._templates = templates

    def _insight(self, participant: Participant) -> str:
        return self._chance.choice(participant.insights or GENERIC_INSIGHTS)

    def build(self, a: Participant, b: Participant) -> tuple[DialogueTurn, ...]:
        """Pick a template and fill it for the pair."""
        template = self._chance.choice(self._templates)
        slots = {
            "a_name": a.display_name,
            "b_name": b.display_name,
            "a_role": a.role.lower() or "your work",
            "b_role": b.role.lower() or "your work",
            "a_greeting": a.greeting or f"Good to see you, {b.display_name}.",
            "b_greeting": b.greeting or f"Good to see you, {a.display_name}.",
            "a_insight": self._insight(a),
            "b_insight": self._insight(b),
        }
        speakers = {"a": a.id, "b": b.id}
        return tuple(
            DialogueTurn(speaker_id=speakers[slot], text=line.format(**slots))
            for slot, line in template
        )
