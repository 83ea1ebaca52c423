"""Tests for Q&A pairing, table rendering and report synthesis."""
from __future__ import annotations

import asyncio
import sqlite3

from interview_session import Session, Transcript
from session_reports import SYNTHESIS_FAILED_TEXT, HistoryStore, ReportSynthesizer, build_qa_pairs, render_qa_table
from session_reports.models import QAPair
from storage.kv import InMemoryKeyValueStore
from tests.conftest import FakeResponse, completion


def _session(config, transcript):
    return Session(config=config, transcript=transcript, state="ended")


def test_pairs_use_last_seen_question_and_mark_code():
    transcript = Transcript()
    transcript.append_answer("answer before any question")
    transcript.append_question("Q1")
    transcript.append_answer("idk")
    transcript.append_answer("second try")
    transcript.append_question("Q2")
    transcript.append_code("SELECT 1;", "sql")

    pairs = build_qa_pairs(transcript.entries)

    assert [(p.question, p.kind) for p in pairs] == [("", "answer"), ("Q1", "answer"), ("Q1", "answer"), ("Q2", "code")]
    assert pairs[1].non_answer is True
    assert pairs[2].non_answer is False
    assert pairs[3].answer == "[code: sql]\nSELECT 1;"


def test_table_without_code_has_two_columns_and_strips_pipes():
    table = render_qa_table([QAPair(question="Q | one", answer="line1\nline2")])
    assert table.splitlines() == ["| Question | Answer |", "|---|---|", "| Q  one | line1<br>line2 |"]


def test_table_with_code_has_kind_column():
    table = render_qa_table(
        [QAPair(question="Q1", answer="words"), QAPair(question="Q2", answer="[code: go]\nfmt.Println()", kind="code")]
    )
    lines = table.splitlines()
    assert lines[0] == "| Question | Answer | Kind |"
    assert lines[1] == "|---|---|---|"
    assert lines[3] == "| Q2 | [code: go]<br>fmt.Println() | code |"


def test_empty_session_gives_header_only_table(completion_client, fake_http, history, practice_config):
    fake_http.queue(completion("## Summary\nNo answers were given. Final score: 0"))
    report = asyncio.run(ReportSynthesizer(completion_client, history).generate(_session(practice_config, Transcript())))

    assert report.qa_pairs == []
    assert report.qa_table == "| Question | Answer |\n|---|---|"
    assert report.synthesis_failed is False
    assert len(history) == 1


def test_prompt_embeds_table_and_strict_scoring_rules(completion_client, fake_http, history, practice_config):
    transcript = Transcript()
    transcript.append_question("Explain CAP theorem")
    transcript.append_answer("Consistency, availability, partition tolerance")
    fake_http.queue(completion("## Report\nFinal score: 55"))

    asyncio.run(ReportSynthesizer(completion_client, history).generate(_session(practice_config, transcript)))

    prompt = fake_http.user_prompts()[0]
    assert "| Explain CAP theorem | Consistency, availability, partition tolerance |" in prompt
    assert "(0-30)" in prompt
    assert "Final score (average, 0-100)" in prompt
    assert "intermediate Backend Engineer at Acme" in prompt


def test_failure_keeps_table_and_uses_fixed_text(completion_client, fake_http, history, practice_config):
    transcript = Transcript()
    transcript.append_question("Q1")
    transcript.append_answer("A1")
    fake_http.queue(FakeResponse(503))

    report = asyncio.run(ReportSynthesizer(completion_client, history).generate(_session(practice_config, transcript)))

    assert report.synthesis_failed is True
    assert report.narrative_summary == SYNTHESIS_FAILED_TEXT
    assert "| Q1 | A1 |" in report.qa_table


def test_generate_twice_appends_two_history_entries_newest_first(completion_client, fake_http, kv_store, practice_config):
    history = HistoryStore(kv_store)
    synthesizer = ReportSynthesizer(completion_client, history)
    transcript = Transcript()
    transcript.append_question("Q1")
    transcript.append_answer("A1")
    session = _session(practice_config, transcript)
    fake_http.queue(completion("first"), completion("second"))

    first = asyncio.run(synthesizer.generate(session))
    transcript.append_answer("added later")
    second = asyncio.run(synthesizer.generate(session))

    entries = history.list()
    assert len(entries) == 2
    assert len(entries[0].qa_pairs) == 2
    assert len(entries[1].qa_pairs) == 1
    assert len(first.qa_pairs) == 1
    assert second.answer_count == 2
    assert len(transcript) == 3


class BrokenStore(InMemoryKeyValueStore):
    def set(self, key, value):
        raise sqlite3.OperationalError("database is locked")


def test_history_write_failure_still_returns_report(completion_client, fake_http, practice_config):
    transcript = Transcript()
    transcript.append_question("Q1")
    transcript.append_answer("An answer")
    fake_http.queue(completion("## Summary\nFinal score: 40"))
    synthesizer = ReportSynthesizer(completion_client, HistoryStore(BrokenStore()))

    report = asyncio.run(synthesizer.generate(_session(practice_config, transcript)))

    assert report.synthesis_failed is False
    assert report.narrative_summary.startswith("## Summary")
    assert report.qa_table.splitlines()[2] == "| Q1 | An answer |"
