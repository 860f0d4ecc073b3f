import asyncio
import json

import httpx
import pytest

from callcoach.errors import PermissionDenied
from callcoach.speech.base import SpeechProvider
from callcoach.suggestion_client import SuggestionClient


class FakeSpeechProvider(SpeechProvider):
    """In-memory provider; tests drive it like the platform would."""

    def __init__(self, supported=True, allow=True):
        super().__init__()
        self.supported = supported
        self.allow = allow
        self.live = False
        self.opens = 0
        self.closes = 0
        self.fail_next_open = None

    def is_supported(self):
        return self.supported

    async def request_permission(self):
        await asyncio.sleep(0)
        if not self.allow:
            raise PermissionDenied("not-allowed")

    def open(self):
        if self.fail_next_open is not None:
            exc, self.fail_next_open = self.fail_next_open, None
            raise exc
        if self.live:
            raise RuntimeError("already started")
        self.live = True
        self.opens += 1

    def close(self):
        if not self.live:
            return
        self.live = False
        self.closes += 1
        self._emit_end()

    # platform-side events

    def finish(self):
        """The platform ends the session on its own."""
        self.live = False
        self._emit_end()

    def say(self, text, is_final=True):
        self._emit_result(text, is_final)

    def fail(self, kind):
        self._emit_error(kind)

    def status(self, tag):
        self._emit_status(tag)


@pytest.fixture
def provider():
    return FakeSpeechProvider()


def advice_body(suggestion="Tell me more", stage="discovery", tip="listen", sentiment="neutral"):
    return {
        "suggestion": suggestion,
        "stage": stage,
        "tip": tip,
        "callerSentiment": sentiment,
    }


def json_transport(body=None, status=200, calls=None):
    """MockTransport answering every request with the same response."""

    def handler(request):
        if calls is not None:
            calls.append(json.loads(request.content))
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body if body is not None else advice_body())

    return httpx.MockTransport(handler)


class ScriptedClient(SuggestionClient):
    """SuggestionClient whose responses are released by the test, in any order."""

    def __init__(self):
        super().__init__("http://advice.test/sales-assistant", timeout=5)
        self.requests = []

    async def get_suggestion(self, utterance, context):
        fut = asyncio.get_running_loop().create_future()
        self.requests.append((utterance, context, fut))
        return await fut

    def resolve(self, index, suggestion):
        self.requests[index][2].set_result(suggestion)
