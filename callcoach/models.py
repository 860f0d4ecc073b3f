"""Data models for the call coach."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Literal, Tuple


SALES_STAGES: Tuple[str, ...] = (
    "greeting",
    "rapport",
    "discovery",
    "value",
    "objection",
    "next_step",
    "close",
)

SENTIMENTS: Tuple[str, ...] = ("positive", "neutral", "hesitant", "negative")

STYLE_KEYS: Tuple[str, ...] = ("warm", "professional", "concise", "consultative", "custom")

ROLES: Tuple[str, ...] = ("caller", "suggestion")


def stage_index(stage: str) -> int:
    """Position of a stage in the sales flow, used as progress."""
    return SALES_STAGES.index(stage)


@dataclass(frozen=True)
class TranscriptEntry:
    """A single line of the call record: something the caller said or a suggestion we used."""
    role: Literal["caller", "suggestion"]
    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    ts: float = field(default_factory=time.time)  # Unix timestamp

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown transcript role: {self.role!r}")
        if not self.text or not self.text.strip():
            raise ValueError("Transcript entry text must not be empty")

    def to_dict(self):
        return {
            "id": self.id,
            "role": self.role,
            "text": self.text,
            "ts": self.ts,
        }

    def to_history(self):
        return {"role": self.role, "text": self.text}


@dataclass(frozen=True)
class Suggestion:
    """What the caller should say next, plus the coach's read of the call."""
    text: str
    stage: str
    tip: str = ""
    sentiment: Literal["positive", "neutral", "hesitant", "negative"] = "neutral"

    def to_dict(self):
        return {
            "suggestion": self.text,
            "stage": self.stage,
            "tip": self.tip,
            "callerSentiment": self.sentiment,
        }


OPENING_SUGGESTION = Suggestion(
    text="Hi! Thanks for picking up. Do you have a quick moment?",
    stage="greeting",
    tip="Be warm and ask permission to talk",
    sentiment="neutral",
)


def fallback_suggestion(stage: str) -> Suggestion:
    """Locally generated suggestion used when the advice service can't help."""
    return Suggestion(
        text="That's interesting, tell me more about that.",
        stage=stage,
        tip="Keep them talking",
        sentiment="neutral",
    )


@dataclass
class CallSettings:
    goal: str = "Get them interested in learning more"
    style_key: str = "warm"
    custom_style_text: str = ""

    def __post_init__(self):
        if self.style_key not in STYLE_KEYS:
            raise ValueError(
                f"Unsupported style: '{self.style_key}'. "
                f"Supported styles are: {', '.join(STYLE_KEYS)}"
            )

    def resolved_style(self) -> str:
        if self.style_key == "custom":
            return self.custom_style_text
        return self.style_key
