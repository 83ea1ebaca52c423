from __future__ import annotations  # Session report domain models

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from interview_session.models import PracticeConfig, TranscriptEntry


class QAPair(BaseModel):  # Answer or code submission paired with its question
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question: str
    answer: str
    kind: Literal["answer", "code"] = "answer"
    non_answer: bool = Field(default=False, alias="nonAnswer")


class SessionReport(BaseModel):  # Synthesized end-of-session report
    model_config = ConfigDict(frozen=True)

    session_id: str
    config: PracticeConfig
    qa_pairs: List[QAPair]
    qa_table: str
    narrative_summary: str
    generated_at: datetime
    synthesis_failed: bool = False
    question_count: int = 0
    answer_count: int = 0
    elapsed_seconds: int = 0


class HistoryEntry(BaseModel):  # Persisted record of one finished session
    model_config = ConfigDict(populate_by_name=True)

    config: PracticeConfig
    qa_pairs: List[QAPair] = Field(default_factory=list, alias="qaPairs")
    transcript: List[TranscriptEntry] = Field(default_factory=list)
    ended_at: datetime = Field(alias="endedAt")


__all__ = ["HistoryEntry", "QAPair", "SessionReport"]
