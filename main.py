#!/usr/bin/env python3
"""
ClawCraft encounters - personas wander, bump into each other, and talk.

Runs the encounter engine for a while against a demo wander feed and prints
encounter events as they happen.
"""

import argparse
import asyncio
import logging
from contextlib import AsyncExitStack
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from clawcraft.adapters import (
    ClaudeDialogueBackend,
    DialoguePromptBuilder,
    HttpGenerationClient,
    HttpMemoryStore,
    HttpRelaySink,
    JsonlRelaySink,
)
from clawcraft.config import load_settings
from clawcraft.demo import WanderFeed
from clawcraft.domain import (
    ContentReadyEvent,
    EncounterEvent,
    ParticipantJoinedEvent,
    SessionEndedEvent,
    SessionStartedEvent,
    TurnDisplayedEvent,
)
from clawcraft.engine import EncounterEngine
from clawcraft.logging_config import setup_logging
from clawcraft.runner import EncounterRunner
from clawcraft.services import (
    ContentGenerator,
    InMemoryMemoryStore,
    NotificationRelay,
    PersonaRegistry,
    RandomChance,
    ScriptedDialogue,
)
from clawcraft.storage import Database, SqliteMemoryStore


def print_event(event: EncounterEvent) -> None:
    stamp = event.timestamp.strftime("%H:%M:%S")
    if isinstance(event, SessionStartedEvent):
        print(f"[{stamp}] {' and '.join(event.participants)} stop to talk ({event.session_id})")
    elif isinstance(event, ContentReadyEvent):
        print(f"[{stamp}]   {event.turn_count} turns ({event.source})")
    elif isinstance(event, TurnDisplayedEvent):
        print(f"[{stamp}]   {event.turn.speaker_id}: {event.turn.text}")
    elif isinstance(event, ParticipantJoinedEvent):
        print(f"[{stamp}]   {event.participant} joins ({event.participant_count} now)")
    elif isinstance(event, SessionEndedEvent):
        print(
            f"[{stamp}] session {event.session_id} ended: {event.reason.value} "
            f"({event.turns_displayed} turns, {event.duration_seconds:.1f}s)"
        )


async def run(args: argparse.Namespace) -> None:
    settings = load_settings(args.config)
    registry = PersonaRegistry()
    chance = RandomChance(args.seed)

    async with AsyncExitStack() as stack:
        sinks = [JsonlRelaySink(args.data / "transcripts.jsonl")]

        if args.backend == "http":
            client = HttpGenerationClient(settings.generation_url)
            memory = HttpMemoryStore(settings.memory_url, turns_per_record=settings.memory_turns_per_record)
            relay_sink = HttpRelaySink(settings.relay_url)
            for adapter in (client, memory, relay_sink):
                stack.push_async_callback(adapter.aclose)
            sinks.append(relay_sink)
        elif args.backend == "claude":
            client = ClaudeDialogueBackend(
                models=settings.candidate_models,
                max_tokens=settings.generation_max_tokens,
                prompts=DialoguePromptBuilder(registry),
            )
            db = await stack.enter_async_context(Database(args.data / "memory.db"))
            memory = SqliteMemoryStore(
                db,
                records_per_pair=settings.memory_records_per_pair,
                turns_per_record=settings.memory_turns_per_record,
            )
            await memory.initialize()
        else:
            client = None
            memory = InMemoryMemoryStore(
                records_per_pair=settings.memory_records_per_pair,
                turns_per_record=settings.memory_turns_per_record,
            )

        generator = ContentGenerator(
            client=client,
            scripts=ScriptedDialogue(chance),
            memory=memory,
            timeout_seconds=settings.generation_timeout_seconds,
            memory_timeout_seconds=settings.memory_timeout_seconds,
            memory_turns=settings.memory_turns_per_record,
        )
        engine = EncounterEngine(
            settings=settings,
            registry=registry,
            generator=generator,
            relay=NotificationRelay(sinks, settings.relay_channel_id),
            chance=chance,
        )
        engine.on_event(print_event)

        feed = WanderFeed(registry.ids(), is_busy=engine.is_busy, seed=args.seed)
        runner = EncounterRunner(engine, feed=feed.step)

        print(f"Running encounters for {args.seconds:.0f}s with the {args.backend} backend...")
        print("-" * 40)
        await runner.run_for(args.seconds)
        print("-" * 40)
        print("Done.")


def main():
    parser = argparse.ArgumentParser(
        description="ClawCraft encounters - chance conversations between personas"
    )
    parser.add_argument(
        "--backend",
        choices=("offline", "http", "claude"),
        default="offline",
        help="Dialogue source: scripted only, the ClawCraft backend, or Claude (default: offline)",
    )
    parser.add_argument(
        "--seconds",
        type=float,
        default=60.0,
        help="How long to run (default: 60)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for wandering and chance rolls",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file (CLAWCRAFT_* environment variables override it)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=Path("data"),
        help="Directory for logs, memory and transcripts (default: ./data)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    # Always log DEBUG to file, console level depends on --debug
    console_level = logging.DEBUG if args.debug else logging.WARNING
    log_path = setup_logging(args.data, console_level=console_level)
    print(f"Logging to: {log_path}")

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nInterrupted.")


if __name__ == "__main__":
    main()
