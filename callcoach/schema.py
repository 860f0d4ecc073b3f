from __future__ import annotations
from typing import Any, Dict, Optional
import json

from callcoach.models import SALES_STAGES, SENTIMENTS, Suggestion


def _balanced_end(s: str, start: int) -> Optional[int]:
    """Index of the brace closing the object that opens at s[start], or None."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(s)):
        ch = s[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def try_parse_json(text: Optional[str]) -> Dict[str, Any]:
    """
    Best-effort JSON extraction (handles prose or markdown fences around the object).
    Returns the first balanced {...} that decodes to a dict.
    """
    if text is None:
        raise ValueError("Empty response")
    s = text.strip()
    if not s:
        raise ValueError("Empty response")

    # direct JSON
    if s.startswith("{") and s.endswith("}"):
        try:
            obj = json.loads(s)
            if isinstance(obj, dict):
                return obj
        except json.JSONDecodeError:
            pass

    start = s.find("{")
    while start != -1:
        end = _balanced_end(s, start)
        if end is None:
            break
        try:
            obj = json.loads(s[start:end + 1])
        except json.JSONDecodeError:
            obj = None
        if isinstance(obj, dict):
            return obj
        start = s.find("{", start + 1)

    raise ValueError("No JSON object found")


def normalize_stage(value: Any, previous: str) -> str:
    stage = str(value or "").strip().lower().replace("-", "_").replace(" ", "_")
    return stage if stage in SALES_STAGES else previous


def normalize_sentiment(value: Any) -> str:
    sentiment = str(value or "").strip().lower()
    return sentiment if sentiment in SENTIMENTS else "neutral"


def normalize_suggestion(obj: Dict[str, Any], previous_stage: str) -> Suggestion:
    """
    Ensure a stable Suggestion so the session never depends on model formatting.
    Raises ValueError when there is nothing to say.
    """
    if not isinstance(obj, dict):
        raise ValueError("Response is not a JSON object")
    text = obj.get("suggestion")
    if not isinstance(text, str) or not text.strip():
        raise ValueError("Response has no suggestion text")
    tip = obj.get("tip")
    return Suggestion(
        text=text.strip(),
        stage=normalize_stage(obj.get("stage"), previous_stage),
        tip=tip.strip() if isinstance(tip, str) else "",
        sentiment=normalize_sentiment(obj.get("callerSentiment")),
    )


def parse_suggestion(text: Optional[str], previous_stage: str) -> Suggestion:
    return normalize_suggestion(try_parse_json(text), previous_stage)
