"""Configuration management for API keys and settings."""

import os
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

# config.py is in callcoach/, .env is in project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)


def _float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class Config:
    """Application configuration from environment variables."""

    # Advice service the live session talks to
    ADVICE_URL: str = os.getenv("ADVICE_URL", "http://127.0.0.1:8010/sales-assistant")
    ADVICE_API_KEY: Optional[str] = os.getenv("ADVICE_API_KEY")
    ADVICE_TIMEOUT_SECONDS: float = _float("ADVICE_TIMEOUT_SECONDS", 8.0)

    # Utterance gating and capture
    UTTERANCE_DEBOUNCE_SECONDS: float = _float("UTTERANCE_DEBOUNCE_SECONDS", 0.5)
    MIN_UTTERANCE_CHARS: int = _int("MIN_UTTERANCE_CHARS", 3)
    RESTART_DELAY_SECONDS: float = _float("RESTART_DELAY_SECONDS", 0.1)
    HISTORY_LIMIT: int = _int("HISTORY_LIMIT", 6)

    # Deepgram live transcription
    DEEPGRAM_API_KEY: Optional[str] = os.getenv("DEEPGRAM_API_KEY")
    DEEPGRAM_MODEL: str = os.getenv("DEEPGRAM_MODEL", "nova-2")
    SPEECH_LANGUAGE: str = os.getenv("SPEECH_LANGUAGE", "en-US")
    MIC_DEVICE: Optional[str] = os.getenv("MIC_DEVICE") or None
    MIC_SAMPLE_RATE: int = _int("MIC_SAMPLE_RATE", 16000)

    # Advice service backend: "gateway", "ollama" or "gemini"
    ADVICE_PROVIDER: str = os.getenv("ADVICE_PROVIDER", "gateway").strip().lower()

    # OpenAI-compatible chat completions gateway
    LLM_GATEWAY_URL: str = os.getenv("LLM_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1")
    LLM_GATEWAY_API_KEY: Optional[str] = os.getenv("LLM_GATEWAY_API_KEY")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "google/gemini-3-flash-preview")

    # Ollama settings (no API key needed, it's local)
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "gemma3:4b")

    # Gemini settings
    GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    SERVER_HOST: str = os.getenv("SERVER_HOST", "127.0.0.1")
    SERVER_PORT: int = _int("SERVER_PORT", 8010)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration and return list of missing required settings."""
        missing = []

        if not cls.DEEPGRAM_API_KEY:
            missing.append("DEEPGRAM_API_KEY (required for live speech capture)")

        if cls.ADVICE_PROVIDER == "gateway" and not cls.LLM_GATEWAY_API_KEY:
            missing.append("LLM_GATEWAY_API_KEY (required when ADVICE_PROVIDER=gateway)")
        if cls.ADVICE_PROVIDER == "gemini" and not cls.GEMINI_API_KEY:
            missing.append("GEMINI_API_KEY (required when ADVICE_PROVIDER=gemini)")

        return missing
