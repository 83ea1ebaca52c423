"""Live interview session: models, transcript, timer and orchestrator."""
from .interview_session import (
    ConfigurationRequiredError,
    InterviewOrchestrator,
    SessionBusyError,
    SessionNotFoundError,
    SessionStateError,
    TurnResult,
)
from .models import AnswerEntry, CodeEntry, DifficultyLevel, PracticeConfig, QuestionEntry, SessionState, TranscriptEntry
from .prompts import FALLBACK_QUESTION
from .session import Session, load_practice_config, save_practice_config
from .timer import SessionTimer
from .transcript import Transcript, render_dialogue, render_entry

__all__ = [
    "AnswerEntry",
    "CodeEntry",
    "ConfigurationRequiredError",
    "DifficultyLevel",
    "FALLBACK_QUESTION",
    "InterviewOrchestrator",
    "PracticeConfig",
    "QuestionEntry",
    "Session",
    "SessionBusyError",
    "SessionNotFoundError",
    "SessionState",
    "SessionStateError",
    "SessionTimer",
    "Transcript",
    "TranscriptEntry",
    "TurnResult",
    "load_practice_config",
    "render_dialogue",
    "render_entry",
    "save_practice_config",
]
