import logging

import pytest

from observability import log_event, span
from observability.logger import format_summary


def test_log_event_returns_payload_and_summarises_known_keys():
    payload = log_event("entry_appended", "s1", entry_kind="answer", entry_id="42", extra="ignored")
    assert payload["kind"] == "entry_appended"
    assert payload["session_id"] == "s1"
    summary = format_summary(payload)
    assert summary.startswith("session=s1 kind=entry_appended")
    assert "entry_kind=answer" in summary
    assert "extra" not in summary


def test_log_event_accepts_level():
    payload = log_event("completion_failed", "s1", level=logging.WARNING, error_kind="NETWORK_ERROR")
    assert payload["error_kind"] == "NETWORK_ERROR"


def test_span_marks_errors_and_reraises(monkeypatch):
    events = []
    monkeypatch.setattr("observability.tracing.log_event", lambda kind, sid, **fields: events.append(fields))

    with span("s1", "ok_call"):
        pass
    with pytest.raises(ValueError):
        with span("s1", "bad_call"):
            raise ValueError("boom")

    assert [e["outcome"] for e in events] == ["ok", "error"]
    assert all(isinstance(e["ms"], int) for e in events)
