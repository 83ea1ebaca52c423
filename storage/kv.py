"""Key-value persistence for practice config, credentials and history."""
from __future__ import annotations

import datetime as dt
import json
import logging
from threading import RLock
from typing import Any, Dict, Optional, Protocol

from config.settings import settings

from .migrate import migrate
from .sqlite import get_conn

logger = logging.getLogger(__name__)

PRACTICE_CONFIG_KEY = "practiceConfig"
USER_CREDENTIAL_KEY = "userGroqApiKey"
HISTORY_KEY = "interviewHistory"


class KeyValueStore(Protocol):  # Whole-value key-value storage interface
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore(KeyValueStore):  # Thread-safe in-memory store
    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, str] = {}
        self._lock = RLock()
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._values.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        # Values round-trip through JSON so callers never share mutable state.
        raw = json.dumps(value)
        with self._lock:
            self._values[key] = raw

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)


class SqliteKeyValueStore(KeyValueStore):  # SQLite-backed store
    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path
        migrate(db_path or settings.DB_PATH)

    def get(self, key: str) -> Optional[Any]:
        with get_conn(self._db_path) as conn:
            row = conn.execute("SELECT value FROM kv_entries WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("Discarding malformed value for key=%s", key)
            return None

    def set(self, key: str, value: Any) -> None:
        timestamp = dt.datetime.now(dt.timezone.utc).isoformat()
        with get_conn(self._db_path) as conn:
            conn.execute(
                """INSERT INTO kv_entries (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at""",
                (key, json.dumps(value), timestamp),
            )

    def delete(self, key: str) -> None:
        with get_conn(self._db_path) as conn:
            conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))


__all__ = [
    "HISTORY_KEY",
    "PRACTICE_CONFIG_KEY",
    "USER_CREDENTIAL_KEY",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqliteKeyValueStore",
]
