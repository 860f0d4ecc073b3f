"""FastAPI advice service: turns what the caller said into the next line to say."""

import logging
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from callcoach.config import Config
from callcoach.errors import RateLimited
from callcoach.models import Suggestion, fallback_suggestion
from callcoach.prompt import build_messages
from callcoach.providers import get_provider
from callcoach.schema import normalize_stage, parse_suggestion

logger = logging.getLogger(__name__)

app = FastAPI(title="Call Coach advice service")

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request models
class HistoryItem(BaseModel):
    role: str
    text: str


class AdviceRequest(BaseModel):
    transcript: str
    goal: str = ""
    style: str = ""
    currentStage: str = "greeting"
    conversationHistory: List[HistoryItem] = []


RATE_LIMITED_SUGGESTION = "Take a breath, let them speak..."


@app.get("/health")
async def health():
    return {"status": "ok", "provider": Config.ADVICE_PROVIDER}


@app.post("/sales-assistant")
async def sales_assistant(request: AdviceRequest):
    """Suggest what to say next; always answers with a usable suggestion body."""
    stage = normalize_stage(request.currentStage, "discovery")
    logger.info("[ADVICE] stage=%s transcript=%s", stage, request.transcript[:50])

    messages = build_messages(
        transcript=request.transcript,
        goal=request.goal,
        style=request.style,
        current_stage=stage,
        history=[h.model_dump() for h in request.conversationHistory[-6:]],
    )

    try:
        provider = get_provider(Config.ADVICE_PROVIDER)
        content = await provider(messages)
    except RateLimited as e:
        logger.warning("[ADVICE] Rate limited: %s", e)
        body = Suggestion(
            text=RATE_LIMITED_SUGGESTION,
            stage=stage,
            tip="Pause and listen",
        ).to_dict()
        return JSONResponse(
            status_code=429,
            content={"error": "Rate limit exceeded. Please wait a moment.", **body},
        )
    except Exception as e:
        logger.exception("[ADVICE] Error in sales-assistant")
        body = Suggestion(
            text="I understand. Could you tell me more?",
            stage="discovery",
            tip="Stay curious",
        ).to_dict()
        return JSONResponse(status_code=500, content={"error": str(e) or "Unknown error", **body})

    try:
        suggestion = parse_suggestion(content, stage)
    except ValueError as e:
        logger.warning("[ADVICE] Parse error: %s | content=%s", e, (content or "")[:200])
        suggestion = fallback_suggestion(stage)

    return suggestion.to_dict()
