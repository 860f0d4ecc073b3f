"""Client for the advice service that turns caller speech into a next line."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from callcoach.config import Config
from callcoach.errors import AdviceServiceError
from callcoach.models import Suggestion, TranscriptEntry, fallback_suggestion
from callcoach.schema import parse_suggestion

logger = logging.getLogger(__name__)

ADVISORY_TEXT = "Still listening, trying again..."


@dataclass
class SuggestionContext:
    goal: str
    style: str
    current_stage: str
    history: List[TranscriptEntry] = field(default_factory=list)


class SuggestionClient:
    """
    One request per utterance, no retries. Every failure resolves to the local
    fallback suggestion and an advisory for the UI, never an exception.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        history_limit: Optional[int] = None,
        on_advisory: Optional[Callable[[str], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or Config.ADVICE_URL
        self.api_key = api_key if api_key is not None else Config.ADVICE_API_KEY
        self.timeout = float(timeout if timeout is not None else Config.ADVICE_TIMEOUT_SECONDS)
        self.history_limit = history_limit if history_limit is not None else Config.HISTORY_LIMIT
        self.on_advisory = on_advisory
        self._transport = transport

    def build_request(self, utterance: str, context: SuggestionContext) -> Dict[str, Any]:
        history = context.history[-self.history_limit:] if self.history_limit > 0 else []
        return {
            "transcript": utterance,
            "goal": context.goal,
            "style": context.style,
            "currentStage": context.current_stage,
            "conversationHistory": [e.to_history() for e in history],
        }

    async def get_suggestion(self, utterance: str, context: SuggestionContext) -> Suggestion:
        try:
            return await asyncio.wait_for(self._fetch(utterance, context), timeout=self.timeout)
        except asyncio.TimeoutError:
            return self._fallback(context, "request timed out")
        except AdviceServiceError as e:
            return self._fallback(context, e.reason)

    async def _fetch(self, utterance: str, context: SuggestionContext) -> Suggestion:
        payload = self.build_request(utterance, context)
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.url, json=payload, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise AdviceServiceError(f"transport error: {type(e).__name__}: {e}") from e

        if r.status_code == 429:
            raise AdviceServiceError("rate limited", status_code=429)
        if not r.is_success:
            raise AdviceServiceError(f"HTTP {r.status_code}", status_code=r.status_code)

        try:
            suggestion = parse_suggestion(r.text, context.current_stage)
        except ValueError as e:
            raise AdviceServiceError(f"unusable response: {e}", status_code=r.status_code) from e

        logger.debug("[ADVICE] %s -> %s (%s)", utterance[:50], suggestion.text[:50], suggestion.stage)
        return suggestion

    def _fallback(self, context: SuggestionContext, reason: str) -> Suggestion:
        logger.warning("[ADVICE] Using fallback suggestion: %s", reason)
        if self.on_advisory:
            try:
                self.on_advisory(ADVISORY_TEXT)
            except Exception:
                logger.exception("[ADVICE] Advisory callback failed")
        return fallback_suggestion(context.current_stage)
