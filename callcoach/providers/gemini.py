from __future__ import annotations
import httpx
from typing import Dict, List

from callcoach.config import Config
from callcoach.errors import RateLimited

# Gemini Developer API (AI Studio) REST base
DEFAULT_GEMINI_BASE = "https://generativelanguage.googleapis.com"


async def generate(messages: List[Dict[str, str]]) -> str:
    """
    Uses the Gemini Developer API generateContent endpoint.
    The system message maps to systemInstruction, the rest to user turns.
    """
    api_key = (Config.GEMINI_API_KEY or "").strip()
    if not api_key:
        raise RuntimeError("GEMINI_API_KEY is not set.")

    url = f"{DEFAULT_GEMINI_BASE}/v1beta/models/{Config.GEMINI_MODEL}:generateContent"

    system = "\n".join(m["content"] for m in messages if m["role"] == "system")
    body = {
        "contents": [
            {"role": "user", "parts": [{"text": m["content"]}]}
            for m in messages if m["role"] != "system"
        ],
        "generationConfig": {"temperature": 0.7, "maxOutputTokens": 300},
    }
    if system:
        body["systemInstruction"] = {"parts": [{"text": system}]}

    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": api_key,
    }

    async with httpx.AsyncClient(timeout=30) as client:
        r = await client.post(url, json=body, headers=headers)
        if r.status_code == 429:
            raise RateLimited("Gemini quota exceeded")
        r.raise_for_status()
        data = r.json()

    cand0 = (data.get("candidates") or [{}])[0]
    parts = ((cand0.get("content") or {}).get("parts") or [])
    return "".join([p.get("text", "") for p in parts if isinstance(p, dict)])
