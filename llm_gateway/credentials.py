"""Active credential lookup: user-supplied value first, then the process default."""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from config.settings import settings
from storage.kv import USER_CREDENTIAL_KEY, KeyValueStore

logger = logging.getLogger(__name__)


class CredentialStatus(BaseModel):
    has_key: bool
    key_length: int
    key_prefix: str


class CredentialResolver:
    """Resolve the credential for each completion call.

    Nothing is cached: a credential saved mid-session is picked up by the
    next call.
    """

    def __init__(self, store: Optional[KeyValueStore] = None, default: Optional[str] = None) -> None:
        self._store = store
        self._default = default

    def resolve(self) -> str:
        user_key = self.user_credential()
        if user_key:
            return user_key
        default = self._default if self._default is not None else settings.GROQ_API_KEY
        return default or ""

    def user_credential(self) -> str:
        if self._store is None:
            return ""
        try:
            value = self._store.get(USER_CREDENTIAL_KEY)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Credential store read failed: %s", exc)
            return ""
        return value if isinstance(value, str) else ""

    def save(self, value: str) -> None:
        if self._store is None:
            raise RuntimeError("No credential store configured")
        self._store.set(USER_CREDENTIAL_KEY, value.strip())

    def clear(self) -> None:
        if self._store is None:
            return
        self._store.delete(USER_CREDENTIAL_KEY)

    def status(self) -> CredentialStatus:
        key = self.resolve()
        return CredentialStatus(has_key=bool(key), key_length=len(key), key_prefix=key[:4])


__all__ = ["CredentialResolver", "CredentialStatus"]
