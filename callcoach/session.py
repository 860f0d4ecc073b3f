"""The live call: capture, gating, suggestions and the transcript, wired together."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from enum import Enum
from typing import Callable, List, Optional, Set

from callcoach.config import Config
from callcoach.errors import PermissionDenied, Unsupported
from callcoach.gate import UtteranceGate
from callcoach.models import (
    OPENING_SUGGESTION,
    SALES_STAGES,
    CallSettings,
    Suggestion,
    TranscriptEntry,
    stage_index,
)
from callcoach.speech import SpeechCaptureEngine, SpeechProvider
from callcoach.suggestion_client import SuggestionClient, SuggestionContext
from callcoach.transcript import TranscriptLog

logger = logging.getLogger(__name__)

Observer = Callable[[str, "CallSession"], None]


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class CallSession:
    """State machine for one caller's coaching session.

    Observers registered with `subscribe()` are called as `(event, session)`
    after every change. Events: state, transcript, interim, suggestion,
    stage, processing, status, notice, error.

    Suggestion requests are tagged with a sequence number and the session
    generation at dispatch time. A response is applied only while the
    session is active, in the same generation, and newer than anything
    applied before it.
    """

    def __init__(
        self,
        provider: Optional[SpeechProvider],
        client: SuggestionClient,
        settings: Optional[CallSettings] = None,
        *,
        opening: Suggestion = OPENING_SUGGESTION,
        history_limit: Optional[int] = None,
        min_utterance_chars: Optional[int] = None,
        debounce_seconds: Optional[float] = None,
        restart_delay: Optional[float] = None,
    ) -> None:
        self.client = client
        self.settings = settings or CallSettings()
        self.opening = opening
        self.history_limit = history_limit if history_limit is not None else Config.HISTORY_LIMIT
        self.log = TranscriptLog()

        self._engine: Optional[SpeechCaptureEngine] = None
        if provider is not None:
            self._engine = SpeechCaptureEngine(
                provider,
                on_interim=self._on_interim,
                on_final=self._on_final,
                on_status=self._on_status,
                on_error=self._on_capture_error,
                restart_delay=restart_delay,
            )
        self._gate = UtteranceGate(
            self._dispatch,
            min_length=min_utterance_chars,
            quiet_window=debounce_seconds,
        )
        if client.on_advisory is None:
            client.on_advisory = self._on_advisory

        self._state = SessionState.IDLE
        self._stage = opening.stage
        self._suggestion = opening
        self._generation = 0
        self._seq = 0
        self._applied_seq = 0
        self._in_flight: Set[asyncio.Task] = set()
        self._observers: List[Observer] = []
        self.last_error = ""
        self.last_notice = ""

    # -- accessors --

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def current_stage(self) -> str:
        return self._stage

    @property
    def stage_index(self) -> int:
        return stage_index(self._stage)

    @property
    def suggestion(self) -> Suggestion:
        return self._suggestion

    @property
    def interim_text(self) -> str:
        return self._engine.interim_text if self._engine else ""

    @property
    def is_listening(self) -> bool:
        return bool(self._engine and self._engine.is_listening)

    @property
    def is_processing(self) -> bool:
        return bool(self._in_flight)

    @property
    def status(self) -> str:
        if not self.is_active:
            return "idle"
        if self.is_processing:
            return "processing"
        if self.is_listening:
            return "listening"
        return "idle"

    # -- observers --

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for observer in list(self._observers):
            try:
                observer(event, self)
            except Exception:
                logger.exception("[SESSION] Observer failed on %s", event)

    # -- lifecycle --

    async def start(self) -> None:
        if self.is_active:
            return
        if self._engine is None or not self._engine.provider.is_supported():
            raise Unsupported("Speech recognition is not supported on this platform")

        self._state = SessionState.ACTIVE
        self._restore_initial()
        self._notify("state")

        try:
            await self._engine.start()
        except Exception:
            if self.is_active:
                self._go_idle()
            raise
        if not self.is_active:
            # end() ran while the microphone was being requested
            self._engine.stop()
            return
        logger.info("[SESSION] Call started")

    def end(self) -> None:
        if not self.is_active:
            return
        if self._engine is not None:
            self._engine.stop()
        self._go_idle()
        logger.info("[SESSION] Call ended, %d entries recorded", len(self.log))

    def reset(self) -> None:
        self._restore_initial()
        self._notify("transcript")
        self._notify("stage")
        self._notify("suggestion")

    def mark_used(self) -> TranscriptEntry:
        entry = self.log.add_suggestion(self._suggestion.text)
        self._notify("transcript")
        return entry

    async def join(self) -> None:
        """Wait for in-flight suggestion requests to settle."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def _restore_initial(self) -> None:
        self._generation += 1
        self._gate.clear()
        self.log.clear()
        self._stage = self.opening.stage
        self._suggestion = self.opening

    def _go_idle(self) -> None:
        self._generation += 1
        self._gate.cancel()
        self._state = SessionState.IDLE
        self._notify("state")

    # -- speech events --

    def _on_interim(self, text: str) -> None:
        self._notify("interim")

    def _on_final(self, text: str) -> None:
        if not self.is_active:
            return
        self.log.add_caller(text)
        self._notify("transcript")
        self._gate.submit(text)

    def _on_status(self, tag: str) -> None:
        logger.debug("[SESSION] Capture status: %s", tag)
        self._notify("status")

    def _on_capture_error(self, kind: str) -> None:
        self.last_error = kind
        if kind == PermissionDenied.kind and self.is_active:
            self._engine.stop()
            self._go_idle()
        self._notify("error")

    def _on_advisory(self, message: str) -> None:
        self.last_notice = message
        self._notify("notice")

    # -- suggestions --

    def _dispatch(self, text: str) -> None:
        self._seq += 1
        task = asyncio.get_running_loop().create_task(
            self._request(text, self._seq, self._generation)
        )
        self._in_flight.add(task)
        task.add_done_callback(self._request_done)
        self._notify("processing")

    def _request_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("[SESSION] Suggestion request failed", exc_info=task.exception())
        self._notify("processing")

    async def _request(self, text: str, seq: int, generation: int) -> None:
        context = SuggestionContext(
            goal=self.settings.goal,
            style=self.settings.resolved_style(),
            current_stage=self._stage,
            history=self.log.recent(self.history_limit),
        )
        suggestion = await self.client.get_suggestion(text, context)

        if not self.is_active or generation != self._generation:
            logger.debug("[SESSION] Discarding suggestion #%d from a finished session", seq)
            return
        if seq <= self._applied_seq:
            logger.debug("[SESSION] Discarding stale suggestion #%d (have #%d)", seq, self._applied_seq)
            return
        self._applied_seq = seq
        self._apply(suggestion)

    def _apply(self, suggestion: Suggestion) -> None:
        if suggestion.stage not in SALES_STAGES:
            suggestion = replace(suggestion, stage=self._stage)
        self._suggestion = suggestion
        if suggestion.stage != self._stage:
            logger.info("[SESSION] Stage %s -> %s", self._stage, suggestion.stage)
            self._stage = suggestion.stage
            self._notify("stage")
        self._notify("suggestion")
