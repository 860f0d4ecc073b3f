import pytest
from fastapi.testclient import TestClient

from callcoach.config import Config
from callcoach.errors import RateLimited
from callcoach.prompt import build_messages
from callcoach.providers import PROVIDERS
from callcoach.server import app


@pytest.fixture
def use_provider(monkeypatch):
    def install(fn):
        monkeypatch.setattr(Config, "ADVICE_PROVIDER", "gateway")
        monkeypatch.setitem(PROVIDERS, "gateway", fn)

    return install


def request_body(**overrides):
    body = {
        "transcript": "We already work with someone",
        "goal": "Book a demo",
        "style": "warm",
        "currentStage": "value",
        "conversationHistory": [
            {"role": "caller", "text": "Who is this?"},
            {"role": "suggestion", "text": "Hi, it's Sam from Acme."},
        ],
    }
    body.update(overrides)
    return body


def test_returns_parsed_suggestion(use_provider):
    seen = []

    async def fake(messages):
        seen.append(messages)
        return 'Here you go: {"suggestion": "Totally fair. What do you like about them?", ' \
               '"stage": "objection", "tip": "Acknowledge first", "callerSentiment": "hesitant"}'

    use_provider(fake)
    r = TestClient(app).post("/sales-assistant", json=request_body())

    assert r.status_code == 200
    assert r.json() == {
        "suggestion": "Totally fair. What do you like about them?",
        "stage": "objection",
        "tip": "Acknowledge first",
        "callerSentiment": "hesitant",
    }
    system, user = seen[0]
    assert "Book a demo" in system["content"]
    assert "Current stage: value" in system["content"]
    assert 'caller: "Who is this?"' in user["content"]
    assert user["content"].endswith("What should I say next?")


def test_unparseable_model_output_falls_back(use_provider):
    async def fake(messages):
        return "I think you should ask about their budget."

    use_provider(fake)
    r = TestClient(app).post("/sales-assistant", json=request_body())

    assert r.status_code == 200
    assert r.json()["suggestion"] == "That's interesting, tell me more about that."
    assert r.json()["stage"] == "value"


def test_rate_limit_maps_to_429(use_provider):
    async def fake(messages):
        raise RateLimited("slow down")

    use_provider(fake)
    r = TestClient(app).post("/sales-assistant", json=request_body())

    assert r.status_code == 429
    data = r.json()
    assert data["suggestion"] == "Take a breath, let them speak..."
    assert data["stage"] == "value"
    assert data["tip"] == "Pause and listen"
    assert "error" in data


def test_backend_failure_maps_to_500(use_provider):
    async def fake(messages):
        raise RuntimeError("LLM_GATEWAY_API_KEY is not configured")

    use_provider(fake)
    r = TestClient(app).post("/sales-assistant", json=request_body())

    assert r.status_code == 500
    data = r.json()
    assert data["error"] == "LLM_GATEWAY_API_KEY is not configured"
    assert data["stage"] == "discovery"
    assert data["suggestion"] == "I understand. Could you tell me more?"


def test_health_reports_provider(monkeypatch):
    monkeypatch.setattr(Config, "ADVICE_PROVIDER", "ollama")
    r = TestClient(app).get("/health")
    assert r.json() == {"status": "ok", "provider": "ollama"}


def test_prompt_without_history_asks_directly():
    messages = build_messages("Who's calling?", goal="", style="", current_stage="greeting")
    assert messages[1]["content"] == 'Caller just said: "Who\'s calling?"\n\nWhat should I say next?'
    assert "warm, professional, concise" in messages[0]["content"]


def test_prompt_keeps_last_six_history_lines():
    history = [{"role": "caller", "text": f"line {i}"} for i in range(9)]
    user = build_messages("next", "", "", "greeting", history)[1]["content"]
    assert "line 2" not in user
    assert "line 3" in user and "line 8" in user
