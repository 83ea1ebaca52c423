from __future__ import annotations  # Chat-completion request gateway

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx
from pydantic import BaseModel

from config import LlmRoute, default_route

from .credentials import CredentialResolver
from .errors import (
    RETRYABLE_ERRORS,
    ErrorKind,
    InvalidCredentialFormatError,
    LlmGatewayError,
    MissingCredentialError,
    NetworkFailureError,
    ParseFailureError,
    UpstreamHTTPError,
    error_for_status,
)


logger = logging.getLogger(__name__)  # Module logger setup

VALIDATION_PROMPT = "Hello, this is a test message."


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class HttpClient(Protocol):  # Minimal async HTTP client protocol
    async def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class CredentialValidation(BaseModel):  # Result of a credential check
    is_valid: bool
    message: str
    error_kind: Optional[ErrorKind] = None


_VALIDATION_MESSAGES: Dict[str, str] = {
    "MISSING_API_KEY": "No API key found. Please add GROQ_API_KEY to your environment or save a key.",
    "INVALID_FORMAT": 'Invalid API key format. Groq API keys should start with "{prefix}".',
    "INVALID_API_KEY": "Invalid API key. Please check your Groq API key.",
    "INSUFFICIENT_PERMISSIONS": "API key is valid but doesn't have permission to access this model.",
    "RATE_LIMIT_EXCEEDED": "Rate limit exceeded. Please try again later.",
    "INVALID_RESPONSE": "API responded but with unexpected format.",
}


class CompletionClient:  # One chat-completion call per request, no session awareness
    def __init__(
        self,
        route: Optional[LlmRoute] = None,
        resolver: Optional[CredentialResolver] = None,
        client: Optional[HttpClient] = None,
    ) -> None:
        self._route = route or default_route()
        self._resolver = resolver or CredentialResolver()
        self._client = client

    @property
    def route(self) -> LlmRoute:
        return self._route

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        credential_override: Optional[str] = None,
    ) -> str:  # Return first choice content verbatim
        credential = credential_override or self._resolver.resolve()
        if not credential:
            raise MissingCredentialError("Completion API key not found. Add GROQ_API_KEY or save a user key.")
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        payload: Dict[str, Any] = {
            "model": self._route.model,
            "messages": messages,
            "temperature": self._route.temperature,
            "max_tokens": self._route.max_tokens,
        }
        attempts = self._route.max_retries + 1
        preview = _preview(messages)
        logger.info(
            "LLM request start route=%s model=%s attempts=%d preview=%s",
            self._route.name,
            self._route.model,
            attempts,
            preview,
        )
        for attempt in range(attempts):
            try:
                data = await self._request(payload, credential)
            except RETRYABLE_ERRORS as exc:
                if attempt + 1 >= attempts:
                    raise
                delay = self._route.retry_backoff_s * (attempt + 1)
                logger.warning(
                    "LLM request retry route=%s attempt=%d/%d kind=%s delay=%.1fs",
                    self._route.name,
                    attempt + 1,
                    attempts,
                    exc.kind,
                    delay,
                )
                await asyncio.sleep(delay)
                continue
            content = _extract_content(data)
            logger.info("LLM request done route=%s model=%s attempt=%d", self._route.name, self._route.model, attempt + 1)
            return content
        raise LlmGatewayError("Completion request exhausted retries")  # pragma: no cover

    async def validate(self, credential: Optional[str] = None) -> CredentialValidation:  # Lightweight credential check
        key = credential if credential is not None else self._resolver.resolve()
        try:
            self.check_format(key)
        except MissingCredentialError:
            return _validation("MISSING_API_KEY")
        except InvalidCredentialFormatError:
            return _validation("INVALID_FORMAT", prefix=self._route.credential_prefix)
        payload: Dict[str, Any] = {
            "model": self._route.model,
            "messages": [{"role": "user", "content": VALIDATION_PROMPT}],
            "max_tokens": self._route.validation_max_tokens,
        }
        try:
            data = await self._request(payload, key)
        except UpstreamHTTPError as exc:
            if exc.kind == "API_ERROR":
                return CredentialValidation(
                    is_valid=False,
                    message=f"API request failed with status {exc.status}",
                    error_kind="API_ERROR",
                )
            return _validation(exc.kind)
        except NetworkFailureError as exc:
            cause = exc.__cause__ or exc
            return CredentialValidation(is_valid=False, message=f"Network error: {cause}", error_kind="NETWORK_ERROR")
        except ParseFailureError:
            return _validation("INVALID_RESPONSE")
        choices = data.get("choices") if isinstance(data, dict) else None
        if isinstance(choices, list) and choices:
            return CredentialValidation(is_valid=True, message="API key is valid and working correctly!")
        return _validation("INVALID_RESPONSE")

    def check_format(self, credential: str) -> None:  # Pre-flight credential checks
        if not credential:
            raise MissingCredentialError("No API key provided")
        if not credential.startswith(self._route.credential_prefix):
            raise InvalidCredentialFormatError(
                f'Invalid API key format. Keys should start with "{self._route.credential_prefix}"'
            )

    async def _request(self, payload: Dict[str, Any], credential: str) -> Any:  # Single POST, status mapped to errors
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {credential}"}
        headers.update(self._route.extra_headers)
        try:
            response = await _post(self._route.url, payload, headers, self._route.timeout_s, self._client)
        except Exception as exc:  # noqa: BLE001
            logger.error("LLM transport failure: %s", exc)
            raise NetworkFailureError("Completion transport failed") from exc
        status = response.status_code
        if status < 200 or status >= 300:
            logger.error("LLM error status: %s", status)
            raise error_for_status(status, getattr(response, "reason_phrase", "") or "")
        try:
            return response.json()
        except Exception as exc:  # noqa: BLE001
            logger.error("Invalid JSON payload from LLM: %s", exc)
            raise ParseFailureError("Completion payload was not JSON") from exc


async def _post(
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    client: Optional[HttpClient],
) -> HttpResponse:  # Dispatch HTTP request
    if client is not None:
        return await client.post(url, json=payload, headers=headers, timeout=timeout)
    async with httpx.AsyncClient(timeout=timeout) as http_client:
        return await http_client.post(url, json=payload, headers=headers)


def _preview(messages: Sequence[Dict[str, str]]) -> str:  # Build preview string for logging
    for message in reversed(messages):
        text = message.get("content", "").strip()
        if text:
            line = text.splitlines()[0]
            return line if len(line) <= 120 else line[:117] + "..."
    return ""


def _extract_content(data: Any) -> str:  # Extract first choice content from the response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
    raise ParseFailureError("Completion response missing choices[0].message.content")


def _validation(kind: ErrorKind, **fmt: str) -> CredentialValidation:
    message = _VALIDATION_MESSAGES[kind].format(**fmt) if fmt else _VALIDATION_MESSAGES[kind]
    return CredentialValidation(is_valid=False, message=message, error_kind=kind)
