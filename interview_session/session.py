from __future__ import annotations  # Session state and practice-config persistence

import logging
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError

from storage.kv import PRACTICE_CONFIG_KEY, KeyValueStore

from .models import PracticeConfig, SessionState, TranscriptEntry
from .transcript import Transcript

logger = logging.getLogger(__name__)


class Session(BaseModel):  # Orchestrator-owned session state
    model_config = {"arbitrary_types_allowed": True}

    session_id: str = Field(default_factory=lambda: uuid4().hex)
    config: Optional[PracticeConfig] = None
    transcript: Transcript = Field(default_factory=Transcript)
    elapsed_seconds: int = Field(default=0, ge=0)
    state: SessionState = "idle"
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @property
    def entries(self) -> List[TranscriptEntry]:
        return list(self.transcript.entries)

    @property
    def is_terminal(self) -> bool:
        return self.state in ("ended", "reported")


def load_practice_config(store: Optional[KeyValueStore]) -> Optional[PracticeConfig]:
    """Read the saved practice config; malformed records count as absent."""
    if store is None:
        return None
    raw = store.get(PRACTICE_CONFIG_KEY)
    if raw is None:
        return None
    try:
        return PracticeConfig.model_validate(raw)
    except ValidationError as exc:
        logger.error("Failed to parse practice config: %s", exc)
        return None


def save_practice_config(store: KeyValueStore, config: PracticeConfig) -> None:
    store.set(PRACTICE_CONFIG_KEY, config.model_dump(by_alias=True))


__all__ = ["Session", "load_practice_config", "save_practice_config"]
