from __future__ import annotations  # Practice session domain models

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DifficultyLevel = Literal["beginner", "intermediate", "advanced"]
EntryKind = Literal["question", "answer", "code"]
SessionState = Literal["idle", "active", "ended", "reported"]


class PracticeConfig(BaseModel):  # Immutable session configuration
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    job_role: str = Field(alias="jobRole", min_length=1)
    difficulty_level: DifficultyLevel = Field(alias="difficultyLevel")
    target_company: Optional[str] = Field(default=None, alias="targetCompany")

    @field_validator("job_role")
    @classmethod
    def _strip_role(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("job role must not be blank")
        return value

    @field_validator("target_company")
    @classmethod
    def _blank_company(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    def describe(self) -> str:
        """``"beginner Software Engineer at Acme"`` style label used in prompts."""
        label = f"{self.difficulty_level} {self.job_role}"
        if self.target_company:
            label += f" at {self.target_company}"
        return label


class _EntryBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    created_at: datetime


class QuestionEntry(_EntryBase):  # Interviewer utterance
    kind: Literal["question"] = "question"


class AnswerEntry(_EntryBase):  # Spoken or typed candidate answer
    kind: Literal["answer"] = "answer"


class CodeEntry(_EntryBase):  # Code submission
    kind: Literal["code"] = "code"
    language: str


TranscriptEntry = Annotated[Union[QuestionEntry, AnswerEntry, CodeEntry], Field(discriminator="kind")]


__all__ = [
    "AnswerEntry",
    "CodeEntry",
    "DifficultyLevel",
    "EntryKind",
    "PracticeConfig",
    "QuestionEntry",
    "SessionState",
    "TranscriptEntry",
]
