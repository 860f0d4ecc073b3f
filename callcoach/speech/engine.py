"""Continuous speech capture with restart-on-terminate."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from callcoach.config import Config
from callcoach.errors import (
    PERMISSION_ERRORS,
    TRANSIENT_PROVIDER_ERRORS,
    PermissionDenied,
    Unsupported,
)
from callcoach.speech.base import SpeechProvider

logger = logging.getLogger(__name__)


@dataclass
class CaptureSession:
    desired_listening: bool = False  # caller's intent
    provider_live: bool = False      # provider session currently open
    interim_text: str = ""


class SpeechCaptureEngine:
    """Keeps a provider session open for as long as the caller wants to listen.

    Providers end sessions on their own. Each end observed while
    `desired_listening` is set schedules exactly one re-open after
    `restart_delay` seconds; `stop()` cancels it.
    """

    def __init__(
        self,
        provider: SpeechProvider,
        *,
        on_interim: Optional[Callable[[str], None]] = None,
        on_final: Optional[Callable[[str], None]] = None,
        on_status: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        restart_delay: Optional[float] = None,
    ) -> None:
        self.provider = provider
        self.on_interim = on_interim
        self.on_final = on_final
        self.on_status = on_status
        self.on_error = on_error
        self.restart_delay = restart_delay if restart_delay is not None else Config.RESTART_DELAY_SECONDS

        self.state = CaptureSession()
        self._restart_handle: Optional[asyncio.TimerHandle] = None
        # bumped by every start() and stop(); a start that awaited permission
        # only proceeds if nothing else touched the engine meanwhile
        self._start_token = 0

        provider.on_result = self._handle_result
        provider.on_error = self._handle_error
        provider.on_status = self._handle_status
        provider.on_end = self._handle_end

    @property
    def is_listening(self) -> bool:
        return self.state.desired_listening

    @property
    def interim_text(self) -> str:
        return self.state.interim_text

    @property
    def restart_pending(self) -> bool:
        return self._restart_handle is not None

    async def start(self) -> None:
        if self.state.desired_listening:
            return
        if not self.provider.is_supported():
            raise Unsupported("Speech recognition is not supported on this platform")

        self._start_token += 1
        token = self._start_token
        try:
            await self.provider.request_permission()
        except PermissionDenied:
            self.state.desired_listening = False
            logger.warning("[CAPTURE] Microphone access denied")
            self._report_error(PermissionDenied.kind)
            raise

        if token != self._start_token:
            logger.debug("[CAPTURE] Start superseded while waiting for microphone access")
            return

        self.state.desired_listening = True
        try:
            self._open_provider()
        except Exception:
            self.state.desired_listening = False
            logger.warning("[CAPTURE] Could not open speech provider")
            raise
        logger.info("[CAPTURE] Listening started")

    def stop(self) -> None:
        self._start_token += 1
        self.state.desired_listening = False
        self._cancel_restart()
        self.state.interim_text = ""
        if self.state.provider_live:
            self.state.provider_live = False
            self.provider.close()
            logger.info("[CAPTURE] Listening stopped")

    def _open_provider(self) -> None:
        if self.state.provider_live:
            return
        self.provider.open()
        self.state.provider_live = True

    def _cancel_restart(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None

    def _handle_end(self) -> None:
        self.state.provider_live = False
        self.state.interim_text = ""
        if not self.state.desired_listening or self._restart_handle is not None:
            return
        logger.debug("[CAPTURE] Provider ended, restarting in %.2fs", self.restart_delay)
        loop = asyncio.get_running_loop()
        self._restart_handle = loop.call_later(self.restart_delay, self._restart)

    def _restart(self) -> None:
        self._restart_handle = None
        if not self.state.desired_listening or self.state.provider_live:
            return
        try:
            self._open_provider()
        except Exception as e:
            if not self.state.desired_listening:
                # Lost a race with stop(); nothing to report
                logger.debug("[CAPTURE] Restart raced with stop: %s", e)
                return
            logger.warning("[CAPTURE] Could not restart recognition: %s", e)
            self._report_error("restart-failed")
            return
        logger.info("[CAPTURE] Provider session re-opened")

    def _handle_result(self, text: str, is_final: bool) -> None:
        if not self.state.desired_listening:
            return
        if not is_final:
            self.state.interim_text = text
            if self.on_interim:
                self.on_interim(text)
            return

        self.state.interim_text = ""
        text = (text or "").strip()
        if not text:
            return
        if self.on_final:
            self.on_final(text)

    def _handle_status(self, tag: str) -> None:
        if self.on_status:
            self.on_status(tag)

    def _handle_error(self, kind: str) -> None:
        if kind in TRANSIENT_PROVIDER_ERRORS:
            logger.debug("[CAPTURE] Ignoring transient provider error: %s", kind)
            return
        if kind in PERMISSION_ERRORS:
            kind = PermissionDenied.kind
            self.state.desired_listening = False
            self._cancel_restart()
        logger.error("[CAPTURE] Speech recognition error: %s", kind)
        self._report_error(kind)

    def _report_error(self, kind: str) -> None:
        if self.on_error:
            self.on_error(kind)
