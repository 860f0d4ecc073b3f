from __future__ import annotations
import httpx
from typing import Dict, List

from callcoach.config import Config
from callcoach.errors import RateLimited


async def generate(messages: List[Dict[str, str]]) -> str:
    """
    OpenAI-compatible chat completions endpoint (hosted gateways, Groq, vLLM...).
    """
    api_key = (Config.LLM_GATEWAY_API_KEY or "").strip()
    if not api_key:
        raise RuntimeError("LLM_GATEWAY_API_KEY is not configured")

    base_url = Config.LLM_GATEWAY_URL.rstrip("/")
    payload = {
        "model": Config.LLM_MODEL,
        "messages": messages,
        "temperature": 0.7,
        "max_tokens": 300,
    }
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    async with httpx.AsyncClient(timeout=30) as client:
        r = await client.post(f"{base_url}/chat/completions", json=payload, headers=headers)
        if r.status_code == 429:
            raise RateLimited("AI gateway rate limit exceeded")
        r.raise_for_status()
        data = r.json()

    content = ((data.get("choices") or [{}])[0].get("message") or {}).get("content")
    if not content:
        raise RuntimeError("No content in response")
    return content
