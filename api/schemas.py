"""Pydantic schemas for the practice session API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from interview_session import InterviewOrchestrator, PracticeConfig, SessionState, TranscriptEntry, TurnResult
from llm_gateway import ErrorKind


class StartReq(BaseModel):
    config: Optional[PracticeConfig] = None
    session_id: Optional[str] = None


class AnswerReq(BaseModel):
    text: str


class CodeReq(BaseModel):
    content: str
    language: str = "plaintext"


class CredentialReq(BaseModel):
    api_key: str = Field(min_length=1)


class ValidateReq(BaseModel):
    api_key: Optional[str] = None


class ErrorView(BaseModel):
    kind: ErrorKind
    status: Optional[int] = None
    message: str


class SessionView(BaseModel):
    session_id: str
    state: SessionState
    elapsed_seconds: int
    busy: bool
    config: Optional[PracticeConfig] = None
    transcript: List[TranscriptEntry] = Field(default_factory=list)
    last_error: Optional[ErrorView] = None
    has_report: bool = False


class TurnResp(BaseModel):
    session: SessionView
    result: Optional[TurnResult] = None


def session_view(orchestrator: InterviewOrchestrator) -> SessionView:
    error = orchestrator.last_error
    return SessionView(
        session_id=orchestrator.session_id,
        state=orchestrator.state,
        elapsed_seconds=orchestrator.elapsed_seconds,
        busy=orchestrator.busy,
        config=orchestrator.session.config,
        transcript=list(orchestrator.transcript.entries),
        last_error=ErrorView(kind=error.kind, status=error.status, message=str(error)) if error else None,
        has_report=orchestrator.last_report is not None,
    )


__all__ = [
    "AnswerReq",
    "CodeReq",
    "CredentialReq",
    "ErrorView",
    "SessionView",
    "StartReq",
    "TurnResp",
    "ValidateReq",
    "session_view",
]
