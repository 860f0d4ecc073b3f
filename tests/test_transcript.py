import pytest

from callcoach.models import (
    OPENING_SUGGESTION,
    CallSettings,
    TranscriptEntry,
    fallback_suggestion,
    stage_index,
)
from callcoach.transcript import TranscriptLog


def test_log_keeps_conversation_order():
    log = TranscriptLog()
    log.add_caller("Who is this?")
    log.add_suggestion("Hi, it's Sam from Acme.")
    log.add_caller("  Okay, go on.  ")

    assert [e.role for e in log] == ["caller", "suggestion", "caller"]
    assert log.entries[-1].text == "Okay, go on."
    assert len({e.id for e in log}) == 3


def test_recent_returns_last_entries_only():
    log = TranscriptLog()
    for i in range(10):
        log.add_caller(f"line {i}")

    recent = log.recent(6)
    assert [e.text for e in recent] == [f"line {i}" for i in range(4, 10)]
    assert log.recent(0) == []


def test_clear_empties_log():
    log = TranscriptLog()
    log.add_caller("hello there")
    log.clear()
    assert len(log) == 0
    assert log.to_dicts() == []


def test_entry_rejects_blank_text_and_unknown_role():
    with pytest.raises(ValueError):
        TranscriptEntry(role="caller", text="   ")
    with pytest.raises(ValueError):
        TranscriptEntry(role="narrator", text="hello")


def test_entry_is_immutable():
    entry = TranscriptEntry(role="caller", text="hello")
    with pytest.raises(Exception):
        entry.text = "changed"


def test_settings_resolve_style():
    assert CallSettings(style_key="concise").resolved_style() == "concise"
    custom = CallSettings(style_key="custom", custom_style_text="folksy and slow")
    assert custom.resolved_style() == "folksy and slow"
    # custom text is ignored unless the custom style is selected
    assert CallSettings(style_key="warm", custom_style_text="ignored").resolved_style() == "warm"


def test_settings_reject_unknown_style():
    with pytest.raises(ValueError):
        CallSettings(style_key="aggressive")


def test_fixed_suggestions():
    assert OPENING_SUGGESTION.stage == "greeting"
    assert OPENING_SUGGESTION.to_dict()["callerSentiment"] == "neutral"
    fb = fallback_suggestion("objection")
    assert fb.stage == "objection"
    assert fb.tip == "Keep them talking"


def test_stage_index_orders_sales_flow():
    assert stage_index("greeting") == 0
    assert stage_index("next_step") == 5
    assert stage_index("close") == 6
