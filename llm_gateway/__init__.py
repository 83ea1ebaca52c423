from __future__ import annotations  # Re-export llm_gateway public API

from .credentials import CredentialResolver, CredentialStatus
from .errors import (
    CREDENTIAL_ERRORS,
    ErrorKind,
    InsufficientPermissionError,
    InvalidCredentialError,
    InvalidCredentialFormatError,
    LlmGatewayError,
    MissingCredentialError,
    NetworkFailureError,
    ParseFailureError,
    RateLimitedError,
    UpstreamError,
    UpstreamHTTPError,
)
from .llm_gateway import CompletionClient, CredentialValidation, HttpClient, HttpResponse

__all__ = [
    "CREDENTIAL_ERRORS",
    "CompletionClient",
    "CredentialResolver",
    "CredentialStatus",
    "CredentialValidation",
    "ErrorKind",
    "HttpClient",
    "HttpResponse",
    "InsufficientPermissionError",
    "InvalidCredentialError",
    "InvalidCredentialFormatError",
    "LlmGatewayError",
    "MissingCredentialError",
    "NetworkFailureError",
    "ParseFailureError",
    "RateLimitedError",
    "UpstreamError",
    "UpstreamHTTPError",
]
