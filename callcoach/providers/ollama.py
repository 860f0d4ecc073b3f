from __future__ import annotations
import httpx
from typing import Dict, List

from callcoach.config import Config


async def generate(messages: List[Dict[str, str]]) -> str:
    base_url = Config.OLLAMA_URL.rstrip("/")
    payload = {
        "model": Config.OLLAMA_MODEL,
        "messages": messages,
        "stream": False,
        "format": "json",
        # Keep generation conservative for small models
        "options": {
            "temperature": 0.4,
        },
    }

    async with httpx.AsyncClient(timeout=30) as client:
        r = await client.post(f"{base_url}/api/chat", json=payload)
        r.raise_for_status()
        data = r.json()

    return (data.get("message") or {}).get("content", "") or ""
