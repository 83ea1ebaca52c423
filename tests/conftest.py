import asyncio
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import default_route
from config.settings import settings
from interview_session import InterviewOrchestrator, PracticeConfig
from llm_gateway import CompletionClient, CredentialResolver
from session_reports import HistoryStore, ReportSynthesizer
from storage.kv import InMemoryKeyValueStore
from storage.migrate import migrate

TEST_KEY = "gsk_test_key_1234567890"


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "GROQ_API_KEY", "", raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, *, text: str = "", reason_phrase: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.reason_phrase = reason_phrase

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def completion(content: str) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"message": {"role": "assistant", "content": content}}]})


class FakeHttpClient:
    """Scripted async HTTP client.

    Each ``post`` pops the next scripted item: a response is returned, an
    exception is raised. When ``gate`` is set the call waits on it first.
    """

    def __init__(self, *items: Any, default: Optional[FakeResponse] = None) -> None:
        self.items: List[Any] = list(items)
        self.default = default
        self.calls: List[Dict[str, Any]] = []
        self.gate: Optional[asyncio.Event] = None

    def queue(self, *items: Any) -> None:
        self.items.extend(items)

    async def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.gate is not None:
            await self.gate.wait()
        item = self.items.pop(0) if self.items else self.default
        if item is None:
            raise AssertionError("FakeHttpClient ran out of scripted responses")
        if isinstance(item, BaseException):
            raise item
        return item

    def user_prompts(self) -> List[str]:
        return [call["json"]["messages"][-1]["content"] for call in self.calls]


@pytest.fixture
def fake_http() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def practice_config() -> PracticeConfig:
    return PracticeConfig(job_role="Backend Engineer", difficulty_level="intermediate", target_company="Acme")


@pytest.fixture
def completion_client(fake_http, kv_store) -> CompletionClient:
    route = default_route().model_copy(update={"retry_backoff_s": 0.0})
    return CompletionClient(route, CredentialResolver(kv_store, default=TEST_KEY), fake_http)


@pytest.fixture
def history(kv_store) -> HistoryStore:
    return HistoryStore(kv_store)


@pytest.fixture
def orchestrator(completion_client, history, kv_store) -> InterviewOrchestrator:
    synthesizer = ReportSynthesizer(completion_client, history)
    return InterviewOrchestrator(completion_client, synthesizer, store=kv_store, timer_interval=0.01)
