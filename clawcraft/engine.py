"""
EncounterEngine - the orchestrator for persona encounters.

This is the primary entry point. It:
- Owns the single encounter slot, participant statuses and the active index
- Turns proximity bumps into sessions (cooldown, busy and chance gates)
- Drives playback: content -> timed bubbles -> release
- Arms epoch-bound timers for awkward silence and the global ceiling
- Releases every session through one cleanup routine

At most one session is non-idle at a time. Only acquisition and cleanup
write the slot, and cleanup bumps the epoch so any timer or task left over
from a released session finds itself stale and does nothing.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Callable, Mapping
from uuid import uuid4

from clawcraft.config import EncounterSettings
from clawcraft.domain import (
    ConversationSession,
    ContentReadyEvent,
    DialogueTurn,
    EncounterEvent,
    EndReason,
    InvalidTransitionError,
    MovementStatus,
    Participant,
    ParticipantId,
    ParticipantJoinedEvent,
    Position,
    SessionEndedEvent,
    SessionId,
    SessionPhase,
    SessionStartedEvent,
    TurnDisplayedEvent,
    TurnKind,
)
from clawcraft.logging_config import log_session
from clawcraft.services import (
    BubbleScheduler,
    ChanceSource,
    ContentGenerator,
    CooldownLedger,
    EpochTimers,
    JoinCoordinator,
    NotificationRelay,
    PersonaRegistry,
    ProximityDetector,
    RandomChance,
    ScriptedDialogue,
)

if TYPE_CHECKING:
    from clawcraft.observer import ObserverAPI

logger = logging.getLogger(__name__)

SILENCE_TIMER = "awkward_silence"
GLOBAL_TIMER = "global_timeout"
RELEASE_TIMER = "release"

SILENCE_TEXT = "..."
DEFAULT_BUBBLE_COLOR = "#ffffff"


class EncounterEngine:
    """
    Session state machine plus the collaborators it coordinates.

    Collaborators not passed in are built from settings: a scripted-only
    content generator, a relay with no sinks, a seedless chance source.
    """

    def __init__(
        self,
        settings: EncounterSettings | None = None,
        registry: PersonaRegistry | None = None,
        generator: ContentGenerator | None = None,
        relay: NotificationRelay | None = None,
        chance: ChanceSource | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or EncounterSettings()
        self.registry = registry or PersonaRegistry()
        self.chance = chance or RandomChance()
        self._clock = clock

        self.generator = generator or ContentGenerator(
            client=None,
            scripts=ScriptedDialogue(self.chance),
            timeout_seconds=self.settings.generation_timeout_seconds,
            memory_timeout_seconds=self.settings.memory_timeout_seconds,
        )
        self.relay = relay or NotificationRelay([], self.settings.relay_channel_id)
        self.cooldowns = CooldownLedger(self.settings.cooldown_seconds, clock=clock)
        self.bubbles = BubbleScheduler(
            min_seconds=self.settings.bubble_min_seconds,
            max_seconds=self.settings.bubble_max_seconds,
            base_seconds=self.settings.bubble_base_seconds,
            seconds_per_char=self.settings.bubble_seconds_per_char,
            clock=clock,
        )
        self.joins = JoinCoordinator(
            self.chance,
            join_chance=self.settings.join_chance,
            max_participants=self.settings.max_participants,
            cooldowns=self.cooldowns,
            requires_cooldown=self.settings.join_requires_cooldown,
        )
        self.proximity = ProximityDetector(self.settings.proximity_threshold)
        self.timers = EpochTimers(lambda: self._epoch)

        # Slot state (written by acquisition and cleanup only)
        self._session: ConversationSession | None = None
        self._epoch = 0
        self._playback: asyncio.Task | None = None

        self._statuses: dict[ParticipantId, MovementStatus] = {}
        self._active_index: dict[ParticipantId, SessionId] = {}

        # Transcript of the current or most recent session
        self._transcript: list[DialogueTurn] = []
        self._transcript_visible_until: float | None = None

        self._event_callbacks: list[Callable[[EncounterEvent], None]] = []
        self._observer: ObserverAPI | None = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def session(self) -> ConversationSession | None:
        """The active session, or None when idle."""
        return self._session

    @property
    def phase(self) -> SessionPhase:
        return self._session.phase if self._session else SessionPhase.IDLE

    @property
    def is_idle(self) -> bool:
        return self._session is None

    @property
    def statuses(self) -> dict[ParticipantId, MovementStatus]:
        return dict(self._statuses)

    @property
    def active_index(self) -> dict[ParticipantId, SessionId]:
        return dict(self._active_index)

    @property
    def observer(self) -> ObserverAPI:
        """Operator API (created on first use)."""
        if self._observer is None:
            from clawcraft.observer import ObserverAPI
            self._observer = ObserverAPI(self)
        return self._observer

    def now(self) -> float:
        """Current time on the engine clock."""
        return self._clock()

    def status_of(self, participant_id: str) -> MovementStatus:
        return self._statuses.get(ParticipantId(participant_id), MovementStatus.IDLE)

    def is_busy(self, participant_id: str) -> bool:
        return self.status_of(participant_id).is_busy

    def transcript(self, now: float | None = None) -> tuple[DialogueTurn, ...]:
        """Turns of the active session, or of the last one during its grace window."""
        if self._session is not None:
            return tuple(self._transcript)
        now = self._clock() if now is None else now
        if self._transcript_visible_until is not None and now < self._transcript_visible_until:
            return tuple(self._transcript)
        return ()

    # =========================================================================
    # Callbacks
    # =========================================================================

    def on_event(self, callback: Callable[[EncounterEvent], None]) -> None:
        """Register a callback for encounter events."""
        self._event_callbacks.append(callback)

    def _emit(self, event: EncounterEvent) -> None:
        for callback in self._event_callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event callback error: {e}")

    # =========================================================================
    # Inputs
    # =========================================================================

    def update_positions(
        self,
        positions: Mapping[str, Position | tuple[float, float]],
    ) -> list[tuple[ParticipantId, ParticipantId]]:
        """
        Feed world positions and act on any new bumps.

        A bump between a session member and an outsider is a join attempt;
        any other bump is an engagement attempt.

        Returns:
            The bumps that started a session or added a joiner
        """
        for participant_id, position in positions.items():
            self.proximity.update(ParticipantId(participant_id), Position(*position))

        acted: list[tuple[ParticipantId, ParticipantId]] = []
        for a, b in self.proximity.scan():
            session = self._session
            if session is not None and session.has_participant(a) != session.has_participant(b):
                outsider = b if session.has_participant(a) else a
                if self.try_join(outsider):
                    acted.append((a, b))
            elif self.handle_bump(a, b):
                acted.append((a, b))
        return acted

    def set_chatting(self, participant_id: str, chatting: bool) -> bool:
        """
        External signal: a user chat panel holds (or releases) a persona.

        Returns False if the persona is unknown or is talking in a session.
        """
        pid = ParticipantId(participant_id)
        if pid not in self.registry or pid in self._active_index:
            return False
        self._statuses[pid] = MovementStatus.CHATTING if chatting else MovementStatus.IDLE
        return True

    # =========================================================================
    # Acquisition
    # =========================================================================

    def handle_bump(self, a_id: str, b_id: str) -> bool:
        """
        Try to turn a bump into a session.

        Returns True if a session started. Every rejection is a silent no-op.
        """
        a = self.registry.get(a_id)
        b = self.registry.get(b_id)
        if a is None or b is None or a.id == b.id:
            logger.debug(f"Bump ignored: unknown or identical participants ({a_id}, {b_id})")
            return False
        if self._session is not None:
            return False
        if self.is_busy(a.id) or self.is_busy(b.id):
            return False
        if not self.cooldowns.can_engage([a.id, b.id]):
            logger.debug(
                f"Bump {a.id}/{b.id} on cooldown "
                f"({self.cooldowns.remaining([a.id, b.id]):.0f}s left)"
            )
            return False
        if not self.chance.roll(self.settings.engagement_chance):
            logger.debug(f"Bump {a.id}/{b.id} did not become a conversation")
            return False

        self._start_session(a, b)
        return True

    def _start_session(self, a: Participant, b: Participant) -> ConversationSession:
        epoch = self._epoch
        session = ConversationSession(
            id=SessionId(str(uuid4())[:8]),
            epoch=epoch,
            participants=[a, b],
            started_at=self._clock(),
        )
        self._session = session
        for participant in (a, b):
            self._statuses[participant.id] = MovementStatus.TALKING
            self._active_index[participant.id] = session.id
        self.cooldowns.record_engagement(session.participant_ids)

        self._transcript = []
        self._transcript_visible_until = None

        self.timers.schedule(GLOBAL_TIMER, self.settings.max_conversation_seconds, epoch, self._on_global_timeout)
        self.timers.schedule(SILENCE_TIMER, self.settings.awkward_silence_seconds, epoch, self._on_silence_timeout)

        log_session(logger, session.id, "started", session.participant_ids, f"epoch={epoch}")
        self._emit(SessionStartedEvent(session_id=session.id, participants=session.participant_ids))

        self._playback = asyncio.create_task(self._run_session(epoch))
        return session

    def _is_current(self, epoch: int) -> bool:
        return self._session is not None and self._epoch == epoch

    # =========================================================================
    # Playback
    # =========================================================================

    async def _run_session(self, epoch: int) -> None:
        """Content, then one turn at a time, then release. Bails out when stale."""
        session = self._session
        first, second = session.participants[0], session.participants[1]
        try:
            result = await self.generator.generate_with_source(first, second)
            if not self._is_current(epoch) or session.phase != SessionPhase.AWAITING_CONTENT:
                return
            if not result.turns:
                self._begin_silence(epoch)
                return

            self.timers.cancel(SILENCE_TIMER)
            session.content_source = result.source
            session.transition(SessionPhase.PLAYING)
            log_session(logger, session.id, "playing", details=f"source={result.source} turns={len(result.turns)}")
            self._emit(ContentReadyEvent(session_id=session.id, source=result.source, turn_count=len(result.turns)))

            for turn in result.turns:
                if not self._is_current(epoch) or session.phase != SessionPhase.PLAYING:
                    return
                display_seconds = self._display_turn(session, turn)
                await asyncio.sleep(display_seconds + self.settings.turn_gap_seconds)

            if self._is_current(epoch):
                self._cleanup(EndReason.COMPLETED)
        except Exception as e:
            logger.error(f"Playback failed for session {session.id}: {e}", exc_info=True)
            if not self._is_current(epoch):
                return
            if session.phase == SessionPhase.AWAITING_CONTENT:
                self._begin_silence(epoch)
            else:
                self._cleanup(EndReason.ERROR)

    def _display_turn(self, session: ConversationSession, turn: DialogueTurn) -> float:
        """Show one turn as a bubble. Returns how long it stays up."""
        session.add_turn(turn)
        self._transcript.append(turn)
        if session.first_turn_displayed_at is None and turn.is_dialogue:
            session.first_turn_displayed_at = self._clock()

        speaker = session.get_participant(turn.speaker_id) or self.registry.get(turn.speaker_id)
        color = speaker.color if speaker else DEFAULT_BUBBLE_COLOR
        self.bubbles.show(turn.speaker_id, turn.text, color)
        display_seconds = self.bubbles.read_time(turn.text)

        self._emit(TurnDisplayedEvent(
            session_id=session.id,
            turn=turn,
            color=color,
            display_seconds=display_seconds,
        ))
        return display_seconds

    # =========================================================================
    # Timers
    # =========================================================================

    def _on_silence_timeout(self, epoch: int) -> None:
        session = self._session
        if session is None or session.phase != SessionPhase.AWAITING_CONTENT:
            return
        logger.info(f"Session {session.id}: no content after {self.settings.awkward_silence_seconds}s")
        self._begin_silence(epoch)

    def _on_global_timeout(self, epoch: int) -> None:
        session = self._session
        if session is None:
            return
        logger.info(f"Session {session.id}: global timeout after {self.settings.max_conversation_seconds}s")
        self._cleanup(EndReason.TIMEOUT)

    def _begin_silence(self, epoch: int) -> None:
        """Show the awkward-silence marker, then release after a short grace."""
        session = self._session
        session.transition(SessionPhase.ENDING)
        self.timers.cancel(SILENCE_TIMER)
        self._cancel_playback()

        speaker = session.participants[0]
        self._display_turn(session, DialogueTurn(speaker_id=speaker.id, text=SILENCE_TEXT, kind=TurnKind.SILENCE))
        log_session(logger, session.id, "awkward silence")

        self.timers.schedule(
            RELEASE_TIMER,
            self.settings.silence_grace_seconds,
            epoch,
            lambda _: self._cleanup(EndReason.AWKWARD_SILENCE),
        )

    # =========================================================================
    # Joining
    # =========================================================================

    def try_join(self, candidate_id: str) -> bool:
        """
        Offer a passer-by to the active session.

        Returns True if they joined. Rejections (no session, not talking yet,
        busy, full, coin flip) are silent.
        """
        session = self._session
        candidate = self.registry.get(candidate_id)
        if session is None or candidate is None:
            return False
        if session.has_participant(candidate.id) or self.is_busy(candidate.id):
            return False
        if not self.joins.try_join(candidate, session):
            return False

        session.add_participant(candidate)
        self._statuses[candidate.id] = MovementStatus.TALKING
        self._active_index[candidate.id] = session.id
        self._display_turn(
            session,
            DialogueTurn(
                speaker_id=candidate.id,
                text=f"*{candidate.display_name} joins the conversation*",
                kind=TurnKind.JOIN,
            ),
        )
        log_session(logger, session.id, "joined", [candidate.id], f"count={len(session.participants)}")
        self._emit(ParticipantJoinedEvent(
            session_id=session.id,
            participant=candidate.id,
            participant_count=len(session.participants),
        ))
        return True

    # =========================================================================
    # Release
    # =========================================================================

    def force_end(self, reason: EndReason = EndReason.FORCED) -> bool:
        """End the active session now. Returns False when already idle."""
        if self._session is None:
            return False
        self._cleanup(reason)
        return True

    def check_health(self, now: float | None = None) -> bool:
        """Force-end a session that outlived the global ceiling. Returns True if one was ended."""
        session = self._session
        if session is None:
            return False
        now = self._clock() if now is None else now
        elapsed = session.elapsed(now)
        if elapsed <= self.settings.max_conversation_seconds:
            return False
        logger.warning(
            f"Session {session.id} stuck in {session.phase.value} for {elapsed:.1f}s, forcing end"
        )
        self._cleanup(EndReason.STUCK)
        return True

    def reset_stuck_participants(self, include_chatting: bool = False) -> list[ParticipantId]:
        """Return to idle anyone marked talking without an active session.

        With include_chatting, chat-panel holds are cleared too (operator
        reset). The periodic sweep leaves them to the chat panel.
        """
        stuck = {MovementStatus.TALKING}
        if include_chatting:
            stuck.add(MovementStatus.CHATTING)
        reset = [
            pid for pid, status in self._statuses.items()
            if status in stuck and pid not in self._active_index
        ]
        for pid in reset:
            self._statuses[pid] = MovementStatus.IDLE
        if reset:
            logger.warning(f"Reset stuck participants: {reset}")
        return reset

    def expire_transcript(self, now: float | None = None) -> bool:
        """Drop the last session's transcript once its grace window passes."""
        if self._session is not None or self._transcript_visible_until is None:
            return False
        now = self._clock() if now is None else now
        if now < self._transcript_visible_until:
            return False
        self._transcript = []
        self._transcript_visible_until = None
        return True

    def _cancel_playback(self) -> None:
        task = self._playback
        self._playback = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _release_phase(self, session: ConversationSession) -> None:
        if session.phase == SessionPhase.PLAYING:
            session.transition(SessionPhase.ENDING)
        if session.phase != SessionPhase.IDLE:
            session.transition(SessionPhase.IDLE)

    def _cleanup(self, reason: EndReason) -> None:
        """
        The only way out of a session.

        Side effects that may fail (relay, cooldown, bubbles) run first; the
        slot, statuses and epoch are restored in the finally block regardless.
        """
        session = self._session
        if session is None:
            return
        now = self._clock()
        try:
            self.timers.cancel_all()
            self._cancel_playback()
            self._release_phase(session)

            for pid in session.participant_ids:
                self.bubbles.clear(pid)
            if session.has_joiners:
                self.cooldowns.record_engagement(session.participant_ids)
            if session.dialogue_turns and reason != EndReason.AWKWARD_SILENCE:
                self.relay.notify(session.participants, session.turns)
            if self._transcript:
                self._transcript_visible_until = now + self.settings.transcript_grace_seconds
        except InvalidTransitionError as e:
            logger.error(f"Session {session.id} released from an unexpected phase: {e}")
        except Exception as e:
            logger.error(f"Session {session.id} cleanup step failed: {e}", exc_info=True)
        finally:
            for pid in session.participant_ids:
                if self._statuses.get(pid) == MovementStatus.TALKING:
                    self._statuses[pid] = MovementStatus.IDLE
                self._active_index.pop(pid, None)
            self._session = None
            self._playback = None
            self._epoch += 1

            duration = session.elapsed(now)
            log_session(
                logger,
                session.id,
                f"ended ({reason.value})",
                session.participant_ids,
                f"turns={len(session.dialogue_turns)} duration={duration:.1f}s",
            )
            self._emit(SessionEndedEvent(
                session_id=session.id,
                reason=reason,
                participants=session.participant_ids,
                turns_displayed=len(session.dialogue_turns),
                duration_seconds=duration,
            ))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def drain(self) -> None:
        """Wait for background memory writes and relay deliveries."""
        await self.generator.drain()
        await self.relay.drain()

    async def shutdown(self) -> None:
        """End any active session and flush background work."""
        logger.info("Encounter engine shutting down")
        self.force_end(EndReason.FORCED)
        self.timers.cancel_all()
        await self.drain()
