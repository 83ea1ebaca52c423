from __future__ import annotations  # Append-only conversation log

import time
from datetime import datetime, timezone
from threading import Lock
from typing import Iterator, List, Optional, Sequence, Tuple

from .models import AnswerEntry, CodeEntry, QuestionEntry, TranscriptEntry


class Transcript:  # Ordered, append-only record of one session's entries
    def __init__(self) -> None:
        self._entries: List[TranscriptEntry] = []
        self._last_id = 0
        self._id_lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(tuple(self._entries))

    @property
    def entries(self) -> Tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def last(self) -> Optional[TranscriptEntry]:
        return self._entries[-1] if self._entries else None

    def last_question(self) -> Optional[QuestionEntry]:
        for entry in reversed(self._entries):
            if isinstance(entry, QuestionEntry):
                return entry
        return None

    def append_question(self, content: str) -> QuestionEntry:
        entry = QuestionEntry(id=self._next_id(), content=content, created_at=_now())
        self._entries.append(entry)
        return entry

    def append_answer(self, content: str) -> AnswerEntry:
        entry = AnswerEntry(id=self._next_id(), content=content, created_at=_now())
        self._entries.append(entry)
        return entry

    def append_code(self, content: str, language: str) -> CodeEntry:
        entry = CodeEntry(id=self._next_id(), content=content, language=language, created_at=_now())
        self._entries.append(entry)
        return entry

    def _next_id(self) -> str:
        # Millisecond timestamp, bumped past the previous id on collision.
        with self._id_lock:
            candidate = max(int(time.time() * 1000), self._last_id + 1)
            self._last_id = candidate
        return str(candidate)


def render_entry(entry: TranscriptEntry) -> str:
    """Render one entry as an ``Interviewer:``/``Candidate:`` dialogue line."""
    if isinstance(entry, QuestionEntry):
        return f"Interviewer: {entry.content}"
    if isinstance(entry, AnswerEntry):
        return f"Candidate: {entry.content}"
    if isinstance(entry, CodeEntry):
        return f"Candidate (code, {entry.language}):\n{code_block(entry.content, entry.language)}"
    raise TypeError(f"Unsupported transcript entry: {entry!r}")


def render_dialogue(entries: Sequence[TranscriptEntry]) -> str:
    return "\n".join(render_entry(entry) for entry in entries)


def code_block(content: str, language: str) -> str:
    return f"```{language}\n{content.rstrip()}\n```"


def _now() -> datetime:
    return datetime.now(timezone.utc)


__all__ = ["Transcript", "code_block", "render_dialogue", "render_entry"]
