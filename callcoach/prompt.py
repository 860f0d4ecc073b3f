from __future__ import annotations
from typing import Any, Dict, List, Optional

DEFAULT_GOAL = "Get them interested in learning more about the product/service"
DEFAULT_STYLE = "warm, professional, concise"


def build_system_prompt(goal: str, style: str, current_stage: str) -> str:
    """
    Single prompt builder shared by all providers.
    Keeping it here prevents prompt logic from getting scattered across the codebase.
    """
    return f"""You are an expert sales coach giving REAL-TIME guidance during a cold call.
The user is on the call right now and needs an instant, usable line.

Context:
- Goal: {goal or DEFAULT_GOAL}
- Communication style: {style or DEFAULT_STYLE}
- Current stage: {current_stage or "greeting"}

Sales flow stages:
1. greeting - brief, warm opener; get permission to talk
2. rapport - quick personal connection
3. discovery - their current situation and pain points
4. value - how we solve their specific problem
5. objection - handle concerns with empathy and facts
6. next_step - propose a concrete next action (demo, meeting)
7. close - confirm the commitment and set expectations

Task: based on what the caller just said, return STRICT JSON with exactly these keys:
- suggestion (string): the exact words to say next, 1-2 short sentences
- stage (string): one of greeting, rapport, discovery, value, objection, next_step, close
- tip (string): a tactical tip, 10 words max
- callerSentiment (string): positive, neutral, hesitant or negative

Rules:
- Short and natural; mirror the caller's energy.
- Use the caller's own words when possible.
- On objections, acknowledge before redirecting.
- Output JSON only. No markdown. No extra keys.
"""


def build_user_prompt(transcript: str, history: Optional[List[Dict[str, Any]]] = None) -> str:
    lines: List[str] = []
    for h in (history or [])[-6:]:
        role = str(h.get("role", "")).strip() or "caller"
        text = str(h.get("text", "")).strip().replace("\n", " ")
        if text:
            lines.append(f'{role}: "{text}"')

    ask = f'Caller just said: "{transcript}"\n\nWhat should I say next?'
    if not lines:
        return ask
    return "Recent conversation:\n" + "\n".join(lines) + "\n\n" + ask


def build_messages(
    transcript: str,
    goal: str,
    style: str,
    current_stage: str,
    history: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": build_system_prompt(goal, style, current_stage)},
        {"role": "user", "content": build_user_prompt(transcript, history)},
    ]
