from __future__ import annotations  # Completion gateway error taxonomy

from typing import Literal, Optional

ErrorKind = Literal[
    "MISSING_API_KEY",
    "INVALID_FORMAT",
    "INVALID_API_KEY",
    "INSUFFICIENT_PERMISSIONS",
    "RATE_LIMIT_EXCEEDED",
    "API_ERROR",
    "NETWORK_ERROR",
    "INVALID_RESPONSE",
]


class LlmGatewayError(RuntimeError):  # Base gateway error
    kind: ErrorKind = "API_ERROR"

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class MissingCredentialError(LlmGatewayError):
    kind: ErrorKind = "MISSING_API_KEY"


class InvalidCredentialFormatError(LlmGatewayError):
    kind: ErrorKind = "INVALID_FORMAT"


class UpstreamHTTPError(LlmGatewayError):  # Non-2xx response, status preserved
    kind: ErrorKind = "API_ERROR"

    def __init__(self, message: str, *, status: int) -> None:
        super().__init__(message, status=status)


class InvalidCredentialError(UpstreamHTTPError):  # 401
    kind: ErrorKind = "INVALID_API_KEY"


class InsufficientPermissionError(UpstreamHTTPError):  # 403
    kind: ErrorKind = "INSUFFICIENT_PERMISSIONS"


class RateLimitedError(UpstreamHTTPError):  # 429
    kind: ErrorKind = "RATE_LIMIT_EXCEEDED"


class UpstreamError(UpstreamHTTPError):  # Any other non-2xx
    kind: ErrorKind = "API_ERROR"


class NetworkFailureError(LlmGatewayError):
    kind: ErrorKind = "NETWORK_ERROR"


class ParseFailureError(LlmGatewayError):
    kind: ErrorKind = "INVALID_RESPONSE"


CREDENTIAL_ERRORS = (
    MissingCredentialError,
    InvalidCredentialFormatError,
    InvalidCredentialError,
    InsufficientPermissionError,
)
RETRYABLE_ERRORS = (RateLimitedError, NetworkFailureError)


def error_for_status(status: int, reason: str = "") -> UpstreamHTTPError:
    """Map a non-2xx status to its error class."""

    detail = f"Completion API error: {status} {reason}".strip()
    if status == 401:
        return InvalidCredentialError(detail, status=status)
    if status == 403:
        return InsufficientPermissionError(detail, status=status)
    if status == 429:
        return RateLimitedError(detail, status=status)
    return UpstreamError(detail, status=status)


__all__ = [
    "CREDENTIAL_ERRORS",
    "RETRYABLE_ERRORS",
    "ErrorKind",
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
    "error_for_status",
]
