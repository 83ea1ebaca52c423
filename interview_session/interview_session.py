from __future__ import annotations  # Practice session lifecycle orchestration

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Dict, FrozenSet, List, Optional, Tuple, Union

from pydantic import BaseModel

from agents.answer_classifier import is_non_answer
from llm_gateway import CREDENTIAL_ERRORS, CompletionClient, LlmGatewayError
from observability import log_event, span
from storage.kv import KeyValueStore

from .models import AnswerEntry, CodeEntry, PracticeConfig, QuestionEntry, SessionState, TranscriptEntry
from .prompts import (
    FALLBACK_QUESTION,
    INTERVIEWER_SYSTEM_PROMPT,
    QUESTION_SYSTEM_PROMPT,
    REVIEWER_SYSTEM_PROMPT,
    build_code_review_prompt,
    build_question_prompt,
    build_reactive_prompt,
)
from .session import Session, load_practice_config
from .timer import SessionTimer
from .transcript import Transcript

if TYPE_CHECKING:
    from session_reports import ReportSynthesizer, SessionReport

logger = logging.getLogger(__name__)

EntryListener = Callable[[TranscriptEntry], None]

_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    "idle": frozenset({"active"}),
    "active": frozenset({"ended"}),
    "ended": frozenset({"active", "reported", "idle"}),
    "reported": frozenset({"active", "reported", "idle"}),
}


class ConfigurationRequiredError(RuntimeError):  # Raised when no practice config exists
    pass


class SessionStateError(RuntimeError):  # Raised on an invalid lifecycle transition
    def __init__(self, current: SessionState, target: str) -> None:
        super().__init__(f"Cannot {target} while session is {current}")
        self.current = current
        self.target = target


class SessionNotFoundError(KeyError):  # Raised by registries for an unknown session id
    pass


class SessionBusyError(RuntimeError):  # Raised when a completion call is already in flight
    pass


class TurnResult(BaseModel):  # Outcome of one answer or code submission
    submitted: Union[AnswerEntry, CodeEntry]
    reply: Optional[QuestionEntry] = None
    non_answer: bool = False
    fell_back: bool = False


class InterviewOrchestrator:
    """Drives one practice session: lifecycle, prompts, transcript appends.

    Completion calls are serialized by a per-session lock, so each prompt
    sees the transcript left by the previous call. Responses that resolve
    after the session left ``active`` (or was restarted) are discarded.
    """

    def __init__(
        self,
        client: CompletionClient,
        synthesizer: "ReportSynthesizer",
        *,
        store: Optional[KeyValueStore] = None,
        timer_interval: Optional[float] = None,
        classifier: Callable[[str], bool] = is_non_answer,
    ) -> None:
        self._client = client
        self._synthesizer = synthesizer
        self._store = store
        self._classifier = classifier
        self._lock = asyncio.Lock()
        self._epoch = 0
        self._listeners: List[EntryListener] = []
        self.session = Session()
        self._timer = SessionTimer(timer_interval, on_tick=self._on_tick)
        self.last_error: Optional[LlmGatewayError] = None
        self.last_report: Optional["SessionReport"] = None

    async def __aenter__(self) -> "InterviewOrchestrator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def transcript(self) -> Transcript:
        return self.session.transcript

    @property
    def elapsed_seconds(self) -> int:
        return self.session.elapsed_seconds

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def timer_running(self) -> bool:
        return self._timer.running

    def subscribe(self, listener: EntryListener) -> Callable[[], None]:
        """Register ``listener`` for every appended entry; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # Lifecycle -----------------------------------------------------------

    async def start(self, config: Optional[PracticeConfig] = None) -> Optional[QuestionEntry]:
        config = config or load_practice_config(self._store)
        if config is None:
            raise ConfigurationRequiredError("Configure a practice session before starting")
        self._check_transition("active", "start")
        if self.busy:
            raise SessionBusyError("Cannot start while a completion call is in flight")
        self._timer.reset()
        self._epoch += 1
        session = self.session
        session.config = config
        session.transcript = Transcript()
        session.elapsed_seconds = 0
        session.started_at = _now()
        session.ended_at = None
        session.state = "active"
        self.last_error = None
        self.last_report = None
        self._timer.start()
        log_event("session_started", self.session_id, state="active", role=config.job_role, difficulty=config.difficulty_level)
        async with self._lock:
            return await self._ask_question(self._epoch)

    def stop(self) -> None:
        self._check_transition("ended", "stop")
        self._timer.cancel()
        self.session.state = "ended"
        self.session.ended_at = _now()
        log_event("session_stopped", self.session_id, state="ended", elapsed=self.session.elapsed_seconds)

    def reset(self) -> None:
        self._check_transition("idle", "reset")
        self._timer.reset()
        self._epoch += 1
        session = self.session
        session.transcript = Transcript()
        session.elapsed_seconds = 0
        session.started_at = None
        session.ended_at = None
        session.state = "idle"
        self.last_report = None
        log_event("session_reset", self.session_id, state="idle")

    def close(self) -> None:
        """Cancel the timer from any state; an active session is ended."""
        self._timer.cancel()
        if self.session.state == "active":
            self.session.state = "ended"
            self.session.ended_at = _now()
            log_event("session_closed", self.session_id, state="ended")

    # Conversation ----------------------------------------------------------

    async def request_question(self) -> Optional[QuestionEntry]:
        self._require_active("request a question")
        async with self._lock:
            return await self._ask_question(self._epoch)

    async def submit_answer(self, text: str) -> Optional[TurnResult]:
        config = self.session.config
        if not text or not text.strip() or config is None:
            return None
        self._require_active("submit an answer")
        async with self._lock:
            epoch = self._epoch
            history = self.transcript.entries
            entry = self._record(self.transcript.append_answer(text))
            non_answer = self._classifier(text)
            prompt = build_reactive_prompt(config, history, text, non_answer=non_answer)
            reply, fell_back = await self._react(epoch, prompt, INTERVIEWER_SYSTEM_PROMPT, "submit_answer")
        return TurnResult(submitted=entry, reply=reply, non_answer=non_answer, fell_back=fell_back)

    async def submit_code(self, content: str, language: str) -> Optional[TurnResult]:
        config = self.session.config
        if not content or not content.strip() or config is None:
            return None
        self._require_active("submit code")
        language = language.strip() or "plaintext"
        async with self._lock:
            epoch = self._epoch
            history = self.transcript.entries
            entry = self._record(self.transcript.append_code(content, language))
            prompt = build_code_review_prompt(config, history, content, language)
            reply, fell_back = await self._react(epoch, prompt, REVIEWER_SYSTEM_PROMPT, "submit_code")
        return TurnResult(submitted=entry, reply=reply, non_answer=self._classifier(content), fell_back=fell_back)

    # Reporting -------------------------------------------------------------

    async def request_report(self) -> "SessionReport":
        if not self.session.is_terminal:
            raise SessionStateError(self.session.state, "generate a report")
        epoch = self._epoch
        async with self._lock:
            report = await self._synthesizer.generate(self.session)
        if epoch != self._epoch or not self.session.is_terminal:
            log_event("late_response_discarded", self.session_id, name="request_report", state=self.state)
            return report
        self.session.state = "reported"
        self.last_report = report
        log_event(
            "report_generated",
            self.session_id,
            state="reported",
            pairs=len(report.qa_pairs),
            outcome="failed" if report.synthesis_failed else "ok",
        )
        return report

    # Internals -------------------------------------------------------------

    async def _ask_question(self, epoch: int) -> Optional[QuestionEntry]:
        config = self.session.config
        if config is None:
            raise ConfigurationRequiredError("Session has no practice config")
        text = ""
        try:
            with span(self.session_id, "request_question"):
                text = (await self._client.complete(build_question_prompt(config), QUESTION_SYSTEM_PROMPT)).strip()
            self.last_error = None
        except LlmGatewayError as exc:
            self._note_error(exc, "request_question")
        if not text:
            text = FALLBACK_QUESTION
        if not self._is_current(epoch):
            log_event("late_response_discarded", self.session_id, name="request_question", state=self.state)
            return None
        return self._record(self.transcript.append_question(text))

    async def _react(self, epoch: int, prompt: str, system_prompt: str, op: str) -> Tuple[Optional[QuestionEntry], bool]:
        try:
            with span(self.session_id, op):
                reply = (await self._client.complete(prompt, system_prompt)).strip()
            self.last_error = None
        except LlmGatewayError as exc:
            self._note_error(exc, op)
            reply = ""
        if not reply:
            if not self._is_current(epoch):
                return None, True
            return await self._ask_question(epoch), True
        if not self._is_current(epoch):
            log_event("late_response_discarded", self.session_id, name=op, state=self.state)
            return None, False
        return self._record(self.transcript.append_question(reply)), False

    def _record(self, entry: TranscriptEntry) -> TranscriptEntry:
        log_event("entry_appended", self.session_id, entry_kind=entry.kind, entry_id=entry.id)
        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception:  # noqa: BLE001
                logger.exception("Transcript listener failed")
        return entry

    def _note_error(self, exc: LlmGatewayError, op: str) -> None:
        self.last_error = exc
        level = logging.ERROR if isinstance(exc, CREDENTIAL_ERRORS) else logging.WARNING
        log_event("completion_failed", self.session_id, level=level, name=op, error_kind=exc.kind, status=exc.status)

    def _is_current(self, epoch: int) -> bool:
        return epoch == self._epoch and self.session.state == "active"

    def _require_active(self, action: str) -> None:
        if self.session.state != "active":
            raise SessionStateError(self.session.state, action)

    def _check_transition(self, target: SessionState, action: str) -> None:
        if target not in _TRANSITIONS[self.session.state]:
            raise SessionStateError(self.session.state, action)

    def _on_tick(self, elapsed: int) -> None:
        if self.session.state == "active":
            self.session.elapsed_seconds = elapsed


def _now() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "ConfigurationRequiredError",
    "EntryListener",
    "InterviewOrchestrator",
    "SessionBusyError",
    "SessionNotFoundError",
    "SessionStateError",
    "TurnResult",
]
