"""Error taxonomy and upstream error classification for the AI endpoints."""

from enum import StrEnum
from typing import Literal

import httpx
from pydantic_ai.exceptions import ModelHTTPError

from src.core.config import Constants


class ModelOperation(StrEnum):
    """Which structured-generation pipeline raised the error."""

    PARSE = "parse"
    ANALYSIS = "analysis"


class ErrorCode:
    """Machine-readable error codes returned to API consumers."""

    # Request errors
    MISSING_INPUT = "MISSING_INPUT"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_REQUEST_FORMAT = "INVALID_REQUEST_FORMAT"
    MISSING_TODOS = "MISSING_TODOS"
    INVALID_PERIOD = "INVALID_PERIOD"

    # Configuration errors
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Upstream model errors
    INVALID_API_KEY = "INVALID_API_KEY"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    NETWORK_ERROR = "NETWORK_ERROR"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AI_PARSE_ERROR = "AI_PARSE_ERROR"
    AI_ANALYSIS_ERROR = "AI_ANALYSIS_ERROR"


class RequestValidationFailure(Exception):
    """Bad, missing, or oversized request input. Always raised before any external call."""

    def __init__(self, code: str, message: str, status_code: int = Constants.HTTP_BAD_REQUEST) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class UpstreamServiceError(Exception):
    """A language-model failure translated into a stable code and HTTP status."""

    def __init__(self, code: str, message: str, status_code: int, detail: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.detail = detail


class AuthError(Exception):
    """Generic authentication backend failure."""


class InvalidCredentialsError(AuthError):
    """Email/password pair or session token was rejected."""


class AlreadyRegisteredError(AuthError):
    """An account with this email already exists."""


class WeakPasswordError(AuthError):
    """Password does not meet the backend's strength rules."""


class DeliveryError(Exception):
    """Outbound email could not be handed to the delivery provider."""


_MESSAGES = {
    ErrorCode.SERVICE_UNAVAILABLE: "AI 서비스 설정이 올바르지 않습니다. 관리자에게 문의하세요.",
    ErrorCode.INVALID_API_KEY: "AI API 키가 올바르지 않습니다. 관리자에게 문의하세요.",
    ErrorCode.QUOTA_EXCEEDED: "AI API 사용량 한도에 도달했습니다. 잠시 후 다시 시도해주세요.",
    ErrorCode.NETWORK_ERROR: "네트워크 연결에 문제가 있습니다. 인터넷 연결을 확인하고 다시 시도해주세요.",
    ErrorCode.MODEL_NOT_FOUND: "AI 모델을 찾을 수 없습니다. 관리자에게 문의하세요.",
    ErrorCode.VALIDATION_ERROR: "AI 응답 형식이 올바르지 않습니다. 다시 시도해주세요.",
    ErrorCode.AI_PARSE_ERROR: "할 일 파싱 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요.",
    ErrorCode.AI_ANALYSIS_ERROR: "할 일 분석 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요.",
}

_STATUS_CODES = {
    ErrorCode.SERVICE_UNAVAILABLE: Constants.HTTP_SERVER_ERROR,
    ErrorCode.INVALID_API_KEY: Constants.HTTP_SERVER_ERROR,
    ErrorCode.QUOTA_EXCEEDED: Constants.HTTP_TOO_MANY_REQUESTS,
    ErrorCode.NETWORK_ERROR: Constants.HTTP_SERVICE_UNAVAILABLE,
    ErrorCode.MODEL_NOT_FOUND: Constants.HTTP_SERVER_ERROR,
    ErrorCode.VALIDATION_ERROR: Constants.HTTP_SERVER_ERROR,
    ErrorCode.AI_PARSE_ERROR: Constants.HTTP_SERVER_ERROR,
    ErrorCode.AI_ANALYSIS_ERROR: Constants.HTTP_SERVER_ERROR,
}

_ERROR_PATTERNS: dict[Literal["auth", "quota", "network", "model", "validation"], list[str]] = {
    "auth": ["api key"],
    "quota": ["quota", "rate limit", "429"],
    "network": ["network", "econnrefused", "timeout", "timed out", "connection error"],
    "model": ["model", "404"],
    "validation": ["schema", "validation"],
}

_NETWORK_EXCEPTION_TYPES = (TimeoutError, ConnectionError, httpx.TimeoutException, httpx.NetworkError)

# Patterns that only apply to the parse pipeline
_PARSE_ONLY = {"model", "validation"}

_PATTERN_CODES = {
    "auth": ErrorCode.INVALID_API_KEY,
    "quota": ErrorCode.QUOTA_EXCEEDED,
    "network": ErrorCode.NETWORK_ERROR,
    "model": ErrorCode.MODEL_NOT_FOUND,
    "validation": ErrorCode.VALIDATION_ERROR,
}


def _fallback_code(operation: ModelOperation) -> str:
    return ErrorCode.AI_PARSE_ERROR if operation == ModelOperation.PARSE else ErrorCode.AI_ANALYSIS_ERROR


def build_upstream_error(code: str, detail: str | None = None) -> UpstreamServiceError:
    """Build an UpstreamServiceError carrying the canonical message and status for a code."""
    return UpstreamServiceError(code=code, message=_MESSAGES[code], status_code=_STATUS_CODES[code], detail=detail)


def _classify_http_status(status_code: int, operation: ModelOperation) -> str:
    """Map a typed upstream HTTP status to an error code."""
    if status_code in (401, 403):  # noqa: PLR2004
        return ErrorCode.INVALID_API_KEY
    if status_code == Constants.HTTP_TOO_MANY_REQUESTS:
        return ErrorCode.QUOTA_EXCEEDED
    if status_code == Constants.HTTP_NOT_FOUND and operation == ModelOperation.PARSE:
        return ErrorCode.MODEL_NOT_FOUND
    if status_code in (502, 503, 504):  # noqa: PLR2004
        return ErrorCode.NETWORK_ERROR
    return _fallback_code(operation)


def classify_model_error(exception: Exception, *, operation: ModelOperation) -> UpstreamServiceError:
    """Classify a structured-generation failure into a stable code and status.

    Typed HTTP errors from the model client are matched on their status code. Everything
    else falls back to phrase matching on the lower-cased message, first match wins.

    Args:
        exception: The exception raised by the model call
        operation: Which pipeline made the call; model/schema codes are parse-only

    Returns:
        UpstreamServiceError ready to be rendered as an error response
    """
    detail = str(exception)

    if isinstance(exception, ModelHTTPError):
        return build_upstream_error(_classify_http_status(exception.status_code, operation), detail)

    if isinstance(exception, _NETWORK_EXCEPTION_TYPES):
        return build_upstream_error(ErrorCode.NETWORK_ERROR, detail)

    error_str = detail.lower()
    for pattern_type, phrases in _ERROR_PATTERNS.items():
        if pattern_type in _PARSE_ONLY and operation != ModelOperation.PARSE:
            continue
        if any(phrase in error_str for phrase in phrases):
            return build_upstream_error(_PATTERN_CODES[pattern_type], detail)

    return build_upstream_error(_fallback_code(operation), detail)
