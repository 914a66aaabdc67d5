"""
DialoguePromptBuilder - prompts for a chance encounter between two personas.

The model is asked for a bare JSON array of {"speaker", "text"} objects.
Responses are parsed tolerantly, so the prompt asks for brevity rather than
relying on perfect formatting.
"""

from clawcraft.services import DialogueRequest, PersonaRegistry, summarize_memory

MIN_TURNS = 4
MAX_TURNS = 6

SYSTEM_PROMPT = """You write short, natural conversations between well-known thinkers who bump into each other while walking around a small pixel-art town.

Rules:
- {min_turns} to {max_turns} turns, alternating speakers
- Each line under 25 words, in the speaker's own voice
- No narration, no stage directions
- Respond with ONLY a JSON array, no prose before or after:
[{{"speaker": "<id>", "text": "<line>"}}, ...]"""


class DialoguePromptBuilder:
    """Builds system and user prompts from a DialogueRequest."""

    def __init__(self, registry: PersonaRegistry | None = None):
        self._registry = registry or PersonaRegistry()

    def build_system_prompt(self) -> str:
        return SYSTEM_PROMPT.format(min_turns=MIN_TURNS, max_turns=MAX_TURNS)

    def build_user_prompt(self, request: DialogueRequest) -> str:
        p1, p2 = request.participant1, request.participant2
        lines = [
            "Two people just crossed paths:",
            f'- id "{p1.id}": {p1.display_name} ({p1.role or "guest"}). Voice: {self._registry.voice_of(p1.id)}',
            f'- id "{p2.id}": {p2.display_name} ({p2.role or "guest"}). Voice: {self._registry.voice_of(p2.id)}',
        ]

        if request.memory:
            lines.append("")
            lines.append("They have talked before. Recent conversations:")
            lines.append(summarize_memory(request.memory))
            lines.append("Let that history colour the conversation without repeating it.")

        lines.append("")
        lines.append(f'{p1.display_name} speaks first. Use the ids "{p1.id}" and "{p2.id}" as speakers.')
        return "\n".join(lines)
