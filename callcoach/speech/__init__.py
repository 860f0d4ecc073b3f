"""Speech capture: provider interface and the self-healing capture engine."""

from callcoach.speech.base import SpeechProvider
from callcoach.speech.engine import CaptureSession, SpeechCaptureEngine


__all__ = ["SpeechProvider", "SpeechCaptureEngine", "CaptureSession"]
