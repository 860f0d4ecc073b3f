import asyncio

import httpx

from callcoach.models import TranscriptEntry
from callcoach.suggestion_client import ADVISORY_TEXT, SuggestionClient, SuggestionContext

from conftest import advice_body, json_transport

URL = "http://advice.test/sales-assistant"


def make_context(stage="rapport", n_history=0):
    history = [TranscriptEntry(role="caller", text=f"line {i}") for i in range(n_history)]
    return SuggestionContext(goal="Book a demo", style="warm", current_stage=stage, history=history)


def run_client(transport, context=None, api_key="", timeout=2.0):
    notices = []
    client = SuggestionClient(
        URL, api_key=api_key, timeout=timeout, on_advisory=notices.append, transport=transport
    )
    result = asyncio.run(client.get_suggestion("We use a competitor", context or make_context()))
    return result, notices


def test_success_sends_bounded_context():
    calls = []
    result, notices = run_client(
        json_transport(advice_body(stage="objection", sentiment="hesitant"), calls=calls),
        make_context(n_history=9),
    )

    assert result.text == "Tell me more"
    assert result.stage == "objection"
    assert result.sentiment == "hesitant"
    assert notices == []

    body = calls[0]
    assert body["transcript"] == "We use a competitor"
    assert body["goal"] == "Book a demo"
    assert body["style"] == "warm"
    assert body["currentStage"] == "rapport"
    assert [h["text"] for h in body["conversationHistory"]] == [f"line {i}" for i in range(3, 9)]
    assert body["conversationHistory"][0] == {"role": "caller", "text": "line 3"}


def test_rate_limit_resolves_to_fallback():
    result, notices = run_client(json_transport({"error": "slow down"}, status=429))

    assert result.text == "That's interesting, tell me more about that."
    assert result.stage == "rapport"
    assert result.sentiment == "neutral"
    assert notices == [ADVISORY_TEXT]


def test_server_error_resolves_to_fallback():
    result, notices = run_client(json_transport(advice_body(), status=500))
    assert result.tip == "Keep them talking"
    assert len(notices) == 1


def test_transport_error_resolves_to_fallback():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result, notices = run_client(httpx.MockTransport(handler))
    assert result.text == "That's interesting, tell me more about that."
    assert len(notices) == 1


def test_malformed_url_resolves_to_fallback():
    def handler(request):
        raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

    result, notices = run_client(httpx.MockTransport(handler))
    assert result.text == "That's interesting, tell me more about that."
    assert result.stage == "rapport"
    assert len(notices) == 1


def test_malformed_body_resolves_to_fallback():
    result, notices = run_client(json_transport("I'm not sure what to say."))
    assert result.stage == "rapport"
    assert len(notices) == 1


def test_prose_wrapped_body_is_parsed():
    raw = (
        'Sure! {"suggestion":"Tell me more","stage":"discovery",'
        '"tip":"listen","callerSentiment":"neutral"} Thanks'
    )
    result, notices = run_client(json_transport(raw))
    assert result.text == "Tell me more"
    assert result.stage == "discovery"
    assert notices == []


def test_unknown_stage_keeps_current_stage():
    result, _ = run_client(json_transport(advice_body(stage="haggling", sentiment="furious")))
    assert result.stage == "rapport"
    assert result.sentiment == "neutral"


def test_slow_service_times_out_to_fallback():
    async def handler(request):
        await asyncio.sleep(1.0)
        return httpx.Response(200, json=advice_body())

    result, notices = run_client(httpx.MockTransport(handler), timeout=0.05)
    assert result.text == "That's interesting, tell me more about that."
    assert notices == [ADVISORY_TEXT]


def test_api_key_sent_as_bearer_token():
    seen = []

    def handler(request):
        seen.append(request.headers.get("authorization"))
        return httpx.Response(200, json=advice_body())

    run_client(httpx.MockTransport(handler), api_key="secret")
    assert seen == ["Bearer secret"]
