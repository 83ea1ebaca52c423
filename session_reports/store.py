from __future__ import annotations  # Interview history persistence layer

import logging
from typing import List

from pydantic import ValidationError

from storage.kv import HISTORY_KEY, KeyValueStore

from .models import HistoryEntry

logger = logging.getLogger(__name__)


class HistoryStore:  # Newest-first list of finished sessions kept under one key
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def prepend(self, entry: HistoryEntry) -> None:  # Insert entry ahead of existing history
        existing = self._raw()
        payload = entry.model_dump(mode="json", by_alias=True)
        self._store.set(HISTORY_KEY, [payload, *existing])

    def list(self, limit: int | None = None) -> List[HistoryEntry]:  # Parse stored history, skipping bad rows
        entries: List[HistoryEntry] = []
        for item in self._raw():
            try:
                entries.append(HistoryEntry.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed history entry: %s", exc)
            if limit is not None and len(entries) >= limit:
                break
        return entries

    def clear(self) -> None:
        self._store.delete(HISTORY_KEY)

    def __len__(self) -> int:
        return len(self._raw())

    def _raw(self) -> List[dict]:
        value = self._store.get(HISTORY_KEY)
        if not isinstance(value, list):
            if value is not None:
                logger.warning("History value is not a list; starting fresh")
            return []
        return value


__all__ = ["HistoryStore"]
