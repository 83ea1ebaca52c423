"""Persistence helpers for the practice session stack."""
from .kv import (
    HISTORY_KEY,
    PRACTICE_CONFIG_KEY,
    USER_CREDENTIAL_KEY,
    InMemoryKeyValueStore,
    KeyValueStore,
    SqliteKeyValueStore,
)
from .migrate import migrate

__all__ = [
    "HISTORY_KEY",
    "PRACTICE_CONFIG_KEY",
    "USER_CREDENTIAL_KEY",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqliteKeyValueStore",
    "migrate",
]
