from datetime import datetime, timezone

from config import default_route
from interview_session import PracticeConfig
from llm_gateway import CompletionClient, CredentialResolver
from observability import admin_cli
from session_reports import HistoryEntry, HistoryStore
from session_reports.models import QAPair
from storage.kv import SqliteKeyValueStore
from tests.conftest import FakeHttpClient, FakeResponse, completion


def _client(*responses) -> CompletionClient:
    return CompletionClient(default_route(), CredentialResolver(default=""), FakeHttpClient(*responses))


def test_check_credential_success(capsys):
    code = admin_cli.check_credential("gsk_abcdefghijklmnop", client=_client(completion("Hi")))
    out = capsys.readouterr().out
    assert code == 0
    assert "gsk_abcd...mnop" in out
    assert "API key is valid" in out


def test_check_credential_reports_kind_on_failure(capsys):
    code = admin_cli.check_credential("gsk_abcdefghijklmnop", client=_client(FakeResponse(401)))
    err = capsys.readouterr().err
    assert code == 1
    assert "INVALID_API_KEY" in err


def test_check_credential_rejects_bad_format_offline(capsys):
    code = admin_cli.check_credential("sk-wrong-prefix-key", client=_client())
    assert code == 1
    assert "INVALID_FORMAT" in capsys.readouterr().err


def test_main_without_key_uses_resolved_default(capsys):
    assert admin_cli.main(["--test-credential"]) == 1
    assert "MISSING_API_KEY" in capsys.readouterr().err


def test_tail_history_prints_latest_sessions(capsys, tmp_db):
    history = HistoryStore(SqliteKeyValueStore(tmp_db))
    history.prepend(
        HistoryEntry(
            config=PracticeConfig(job_role="SRE", difficulty_level="beginner"),
            qa_pairs=[QAPair(question="Q", answer="idk", non_answer=True)],
            transcript=[],
            ended_at=datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        )
    )
    assert admin_cli.main(["--tail-history", "5"]) == 0
    out = capsys.readouterr().out
    assert "beginner SRE" in out
    assert "answers=1 non_answers=1" in out
