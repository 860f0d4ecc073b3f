"""Exceptions raised by the call coach."""

from __future__ import annotations


# Provider error kinds that are expected during normal dictation and never surfaced
TRANSIENT_PROVIDER_ERRORS = frozenset({"no-speech", "aborted"})

PERMISSION_ERRORS = frozenset({"not-allowed", "permission-denied"})


class CallCoachError(Exception):
    """Base class for call coach errors."""


class PermissionDenied(CallCoachError):
    """Microphone access was refused."""

    kind = "permission-denied"


class Unsupported(CallCoachError):
    """No speech provider is available on this platform."""

    kind = "unsupported"


class AdviceServiceError(CallCoachError):
    """The advice service could not produce a usable suggestion."""

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class RateLimited(CallCoachError):
    """The language model backend is throttling us."""
