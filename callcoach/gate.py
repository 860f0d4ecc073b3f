"""Debounce and duplicate suppression for finalized speech."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from callcoach.config import Config

logger = logging.getLogger(__name__)


class UtteranceGate:
    """
    Decides which final utterances are worth a suggestion request.

    Only the most recent distinct, long-enough utterance of a burst is
    dispatched, after `quiet_window` seconds without a newer one.
    """

    def __init__(
        self,
        dispatch: Callable[[str], None],
        *,
        min_length: Optional[int] = None,
        quiet_window: Optional[float] = None,
    ) -> None:
        self._dispatch = dispatch
        self.min_length = min_length if min_length is not None else Config.MIN_UTTERANCE_CHARS
        self.quiet_window = quiet_window if quiet_window is not None else Config.UTTERANCE_DEBOUNCE_SECONDS
        self._last_accepted = ""
        self._pending: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def submit(self, text: str) -> bool:
        """Returns True when the text was accepted and a dispatch scheduled."""
        text = (text or "").strip()
        if len(text) < self.min_length:
            return False
        if text == self._last_accepted:
            logger.debug("[GATE] Dropping repeated utterance: %s", text[:50])
            return False

        self._last_accepted = text
        self.cancel()
        loop = asyncio.get_running_loop()
        self._pending = loop.call_later(self.quiet_window, self._fire, text)
        return True

    def _fire(self, text: str) -> None:
        self._pending = None
        self._dispatch(text)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def clear(self) -> None:
        """Cancel any pending dispatch and forget the last accepted text."""
        self.cancel()
        self._last_accepted = ""
