"""Wiring and lookup for live practice sessions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Dict, List, Optional

from config import LlmRoute
from interview_session import InterviewOrchestrator, SessionBusyError, SessionNotFoundError
from llm_gateway import CompletionClient, CredentialResolver, HttpClient
from session_reports import HistoryStore, ReportSynthesizer
from storage.kv import KeyValueStore, SqliteKeyValueStore

logger = logging.getLogger(__name__)


class SessionRegistry:  # Thread-safe map of session id to orchestrator
    def __init__(self) -> None:
        self._sessions: Dict[str, InterviewOrchestrator] = {}
        self._lock = RLock()

    def add(self, orchestrator: InterviewOrchestrator) -> InterviewOrchestrator:
        with self._lock:
            self._sessions[orchestrator.session_id] = orchestrator
        return orchestrator

    def get(self, session_id: str) -> InterviewOrchestrator:
        with self._lock:
            orchestrator = self._sessions.get(session_id)
        if orchestrator is None:
            raise SessionNotFoundError(session_id)
        return orchestrator

    def acquire(self, session_id: str) -> InterviewOrchestrator:
        """Like :meth:`get`, but refuses a session with a completion call in flight."""
        orchestrator = self.get(session_id)
        if orchestrator.busy:
            raise SessionBusyError(f"Session {session_id} is waiting on a completion call")
        return orchestrator

    def remove(self, session_id: str) -> None:
        with self._lock:
            orchestrator = self._sessions.pop(session_id, None)
        if orchestrator is not None:
            orchestrator.close()

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def close_all(self) -> None:
        with self._lock:
            sessions, self._sessions = list(self._sessions.values()), {}
        for orchestrator in sessions:
            orchestrator.close()
        if sessions:
            logger.info("Closed %d practice session(s)", len(sessions))


@dataclass
class PracticeServices:  # Shared collaborators for every session in the process
    store: KeyValueStore
    resolver: CredentialResolver
    client: CompletionClient
    history: HistoryStore
    synthesizer: ReportSynthesizer
    registry: SessionRegistry = field(default_factory=SessionRegistry)
    timer_interval: Optional[float] = None

    def new_orchestrator(self) -> InterviewOrchestrator:
        orchestrator = InterviewOrchestrator(
            self.client,
            self.synthesizer,
            store=self.store,
            timer_interval=self.timer_interval,
        )
        return self.registry.add(orchestrator)


def build_services(
    store: Optional[KeyValueStore] = None,
    *,
    route: Optional[LlmRoute] = None,
    http_client: Optional[HttpClient] = None,
    timer_interval: Optional[float] = None,
) -> PracticeServices:
    store = store if store is not None else SqliteKeyValueStore()
    resolver = CredentialResolver(store)
    client = CompletionClient(route, resolver, http_client)
    history = HistoryStore(store)
    return PracticeServices(
        store=store,
        resolver=resolver,
        client=client,
        history=history,
        synthesizer=ReportSynthesizer(client, history),
        timer_interval=timer_interval,
    )


__all__ = ["PracticeServices", "SessionRegistry", "build_services"]
