"""Real-time cold-call coach."""

from callcoach.errors import PermissionDenied, Unsupported
from callcoach.models import CallSettings, Suggestion, TranscriptEntry
from callcoach.session import CallSession, SessionState
from callcoach.suggestion_client import SuggestionClient, SuggestionContext
from callcoach.transcript import TranscriptLog

__version__ = "1.0.0"

__all__ = [
    "CallSession",
    "CallSettings",
    "PermissionDenied",
    "SessionState",
    "Suggestion",
    "SuggestionClient",
    "SuggestionContext",
    "TranscriptEntry",
    "TranscriptLog",
    "Unsupported",
]
