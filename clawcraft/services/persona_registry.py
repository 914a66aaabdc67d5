"""
Persona registry - the roster of participants that can meet in the world.

Static data: ids, display names, bubble colors, roles, greetings, and a few
insight phrases per persona for scripted dialogue. PERSONA_VOICES carries
a one-line speaking style used when prompting a generation backend.
"""

from __future__ import annotations

from typing import Iterable

from clawcraft.domain import Participant, ParticipantId


def _persona(
    id: str,
    name: str,
    color: str,
    role: str,
    greeting: str,
    *insights: str,
) -> Participant:
    return Participant(
        id=ParticipantId(id),
        display_name=name,
        color=color,
        role=role,
        greeting=greeting,
        insights=insights,
    )


DEFAULT_PERSONAS: tuple[Participant, ...] = (
    # Marketing
    _persona(
        "hormozi", "Alex Hormozi", "#ff6600", "Business & Offers",
        "What's up! Let's talk about how to make your offer so good people feel stupid saying no.",
        "Volume negates luck. Do more reps than anyone else.",
        "Price is only an issue in the absence of value.",
    ),
    _persona(
        "robbins", "Tony Robbins", "#ff9900", "Peak Performance",
        "Hey! Remember - it's not about resources, it's about resourcefulness!",
        "Where focus goes, energy flows.",
        "Change your state and you change your results.",
    ),
    _persona(
        "kennedy", "Dan Kennedy", "#cc6600", "Direct Response",
        "Listen, most marketing is garbage. Let me show you what actually works.",
        "If you can't measure it, don't buy it.",
        "Every piece of marketing should ask for a response.",
    ),
    _persona(
        "abraham", "Jay Abraham", "#996633", "Strategy & Growth",
        "The biggest breakthroughs come from preeminence. Let me explain...",
        "There are only three ways to grow a business.",
        "Fall in love with your clients, not your product.",
    ),
    _persona(
        "halbert", "Gary Halbert", "#cc9933", "Copywriting Legend",
        "Grab a cup of coffee. I'm gonna teach you how to write words that sell.",
        "Find a starving crowd before you write a single word.",
        "The headline does eighty percent of the work.",
    ),
    # Mindset and philosophy
    _persona(
        "goggins", "David Goggins", "#cc0000", "Mental Toughness",
        "Stay hard! Your mind is trying to protect you, but you gotta callous it.",
        "When you think you're done, you're only at forty percent.",
        "Nobody is coming to save you. Stay hard.",
    ),
    _persona(
        "rosenberg", "Marshall Rosenberg", "#cc99ff", "Nonviolent Communication",
        "When we focus on feelings and needs, connection becomes natural.",
        "Behind every judgment is an unmet need.",
        "Observe without evaluating. That alone changes the conversation.",
    ),
    _persona(
        "naval", "Naval Ravikant", "#3399ff", "Wealth & Wisdom",
        "Seek wealth, not money or status. Wealth is assets that earn while you sleep.",
        "Play long-term games with long-term people.",
        "Specific knowledge can't be taught, but it can be learned.",
    ),
    _persona(
        "franklin", "Ben Franklin", "#ffcc00", "Founding Wisdom",
        "An investment in knowledge pays the best interest, my friend.",
        "Well done is better than well said.",
        "Lost time is never found again.",
    ),
    _persona(
        "lewis", "C.S. Lewis", "#9966cc", "Faith & Reason",
        "You can't go back and change the beginning, but you can start where you are.",
        "Humility is not thinking less of yourself, it's thinking of yourself less.",
        "Courage is every virtue at its testing point.",
    ),
    # Modern visionaries
    _persona(
        "musk", "Elon Musk", "#00cc66", "Innovation & Scale",
        "The thing about... um... first principles is you have to reason from the ground up.",
        "The best part is no part. Delete before you optimize.",
        "If the schedule isn't aggressive, it's probably too long.",
    ),
    _persona(
        "mises", "Ludwig von Mises", "#6699cc", "Economics",
        "Human action is purposeful behavior. Let us examine the economics of your situation.",
        "Prices carry knowledge no planner can gather.",
        "Every action is an exchange of one state of affairs for another.",
    ),
    _persona(
        "adams", "Scott Adams", "#ff6699", "Systems & Persuasion",
        "Goals are for losers. Systems are for winners. Let me show you why.",
        "Stack your talents until the combination is rare.",
        "Energy is the thing to optimize, not time.",
    ),
    _persona(
        "munger", "Charlie Munger", "#8b4513", "Mental Models",
        "Invert, always invert. Tell me what would guarantee failure, and we'll avoid that.",
        "Show me the incentive and I'll show you the outcome.",
        "It's remarkable how much we gain by trying to be consistently not stupid.",
    ),
    _persona(
        "aurelius", "Marcus Aurelius", "#4a4a4a", "Stoic Philosophy",
        "You have power over your mind, not outside events. Realize this, and you will find strength.",
        "The impediment to action advances action.",
        "Waste no more time arguing what a good man should be. Be one.",
    ),
    _persona(
        "feynman", "Richard Feynman", "#00aaff", "First Principles",
        "See, the thing is... if you can't explain it simply, you don't understand it well enough!",
        "The first principle is that you must not fool yourself.",
        "I'd rather have questions that can't be answered than answers that can't be questioned.",
    ),
    _persona(
        "dalio", "Ray Dalio", "#336699", "Principles & Systems",
        "Pain plus reflection equals progress. Let's diagnose what's really happening here.",
        "Believability-weight your decisions.",
        "Look at the machine, not just the outcome.",
    ),
)

PERSONA_VOICES: dict[str, str] = {
    "hormozi": "direct, value-focused, obsessed with offers and scaling",
    "goggins": "intense, motivational, no excuses, says 'stay hard' naturally",
    "naval": "philosophical, speaks in clear observations about leverage and happiness",
    "musk": "first principles, ambitious, the occasional awkward pause",
    "robbins": "energetic, focused on state and strategy, asks powerful questions",
    "kennedy": "contrarian direct marketer, no-nonsense, focused on ROI",
    "abraham": "strategic, focused on leverage and optimization",
    "halbert": "storyteller, direct, sometimes crude humor",
    "rosenberg": "compassionate, focused on feelings and needs",
    "franklin": "wise, witty and practical, focused on virtue",
    "lewis": "thoughtful, draws on faith and reason, clear prose",
    "mises": "Austrian economist, talks about human action and free markets",
    "adams": "systems thinker, persuasion expert, contrarian takes",
}


class PersonaRegistry:
    """Lookup of participants by id."""

    def __init__(self, personas: Iterable[Participant] = DEFAULT_PERSONAS):
        self._personas: dict[ParticipantId, Participant] = {}
        for persona in personas:
            self.register(persona)

    def register(self, persona: Participant) -> None:
        if persona.id in self._personas:
            raise ValueError(f"Duplicate persona id: {persona.id}")
        self._personas[persona.id] = persona

    def get(self, participant_id: str) -> Participant | None:
        return self._personas.get(ParticipantId(participant_id))

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._personas

    def __len__(self) -> int:
        return len(self._personas)

    def ids(self) -> list[ParticipantId]:
        return list(self._personas)

    def all(self) -> list[Participant]:
        return list(self._personas.values())

    def voice_of(self, participant_id: str) -> str:
        """Speaking style for prompts; falls back to the persona's role."""
        voice = PERSONA_VOICES.get(participant_id)
        if voice:
            return voice
        persona = self.get(participant_id)
        return persona.role if persona else ""
