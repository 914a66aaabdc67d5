"""
ClawCraft encounters - chance conversations between personas in a shared world.

When two personas wander close enough, the engine may stop them for a short
conversation: dialogue is generated (or scripted when generation fails),
shown as timed speech bubbles, opened to passers-by, and posted as a
transcript once it ends.

Main entry points:
- EncounterEngine: The orchestrator and session state machine
- EncounterRunner: Periodic maintenance loop on the event loop
- ObserverAPI: Operator interface

Example usage:
    from clawcraft import EncounterEngine, EncounterRunner

    engine = EncounterEngine()
    engine.update_positions({"naval": (3.0, 4.0), "munger": (3.5, 4.0)})
"""

from .config import EncounterSettings, load_settings
from .engine import EncounterEngine
from .runner import EncounterRunner
from .observer import ObserverAPI, ObserverError
from .logging_config import setup_logging

__all__ = [
    "EncounterSettings",
    "load_settings",
    "EncounterEngine",
    "EncounterRunner",
    "ObserverAPI",
    "ObserverError",
    "setup_logging",
]
