"""Speech provider abstraction for live dictation."""

from abc import ABC, abstractmethod
from typing import Callable, Optional


class SpeechProvider(ABC):
    """Abstract interface for continuous dictation backends.

    A provider may end its session on its own at any time (idle timeouts,
    network drops, platform limits). It reports that through `on_end` and
    leaves restarting to the caller.

    Callbacks must be invoked on the event loop thread.
    """

    def __init__(self):
        self.on_result: Optional[Callable[[str, bool], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self.on_status: Optional[Callable[[str], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

    def is_supported(self) -> bool:
        """Whether this provider can run on the current platform."""
        return True

    @abstractmethod
    async def request_permission(self) -> None:
        """Ask for microphone access.

        Raises:
            PermissionDenied: If access is refused or no input device exists
        """
        pass

    @abstractmethod
    def open(self) -> None:
        """Begin a dictation session.

        Raises:
            RuntimeError: If a session is already open
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """End the current session, if any. Reports `on_end` before returning."""
        pass

    def _emit_result(self, text: str, is_final: bool) -> None:
        if self.on_result:
            self.on_result(text, is_final)

    def _emit_error(self, kind: str) -> None:
        if self.on_error:
            self.on_error(kind)

    def _emit_status(self, tag: str) -> None:
        if self.on_status:
            self.on_status(tag)

    def _emit_end(self) -> None:
        if self.on_end:
            self.on_end()
