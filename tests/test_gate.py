import asyncio

from callcoach.gate import UtteranceGate

WINDOW = 0.02


def make_gate(min_length=3):
    sent = []
    gate = UtteranceGate(sent.append, min_length=min_length, quiet_window=WINDOW)
    return gate, sent


async def settle():
    await asyncio.sleep(WINDOW * 4)


def test_duplicate_submission_dispatches_once():
    async def scenario():
        gate, sent = make_gate()
        assert gate.submit("Who is calling?")
        assert not gate.submit("Who is calling?")
        await settle()
        return sent

    assert asyncio.run(scenario()) == ["Who is calling?"]


def test_short_text_never_dispatches():
    async def scenario():
        gate, sent = make_gate()
        assert not gate.submit("ok")
        assert not gate.submit("  a ")
        assert not gate.submit("")
        await settle()
        return sent, gate.pending

    sent, pending = asyncio.run(scenario())
    assert sent == []
    assert not pending


def test_burst_keeps_only_latest_utterance():
    async def scenario():
        gate, sent = make_gate()
        gate.submit("We already have a vendor")
        gate.submit("and we're happy with them")
        await settle()
        return sent

    assert asyncio.run(scenario()) == ["and we're happy with them"]


def test_repeat_suppressed_across_bursts():
    async def scenario():
        gate, sent = make_gate()
        gate.submit("Not interested")
        await settle()
        gate.submit("Not interested")
        await settle()
        return sent

    assert asyncio.run(scenario()) == ["Not interested"]


def test_only_adjacent_repeats_are_suppressed():
    async def scenario():
        gate, sent = make_gate()
        for text in ["Not interested", "What is it?", "Not interested"]:
            gate.submit(text)
            await settle()
        return sent

    assert asyncio.run(scenario()) == ["Not interested", "What is it?", "Not interested"]


def test_cancel_drops_pending_dispatch():
    async def scenario():
        gate, sent = make_gate()
        gate.submit("Call me next week")
        gate.cancel()
        await settle()
        return sent

    assert asyncio.run(scenario()) == []


def test_clear_forgets_last_text():
    async def scenario():
        gate, sent = make_gate()
        gate.submit("Sounds good")
        await settle()
        gate.clear()
        gate.submit("Sounds good")
        await settle()
        return sent

    assert asyncio.run(scenario()) == ["Sounds good", "Sounds good"]
