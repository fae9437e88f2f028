"""Free-text normalization and bounds checks for the todo parser.

Everything here runs before any model call; a rejected input never reaches
the upstream service.
"""

import re
import unicodedata
from typing import Any

from src.core.config import Constants
from src.core.errors import ErrorCode, RequestValidationFailure


_WHITESPACE_RUN = re.compile(r"\s+")
_NEWLINE_RUN = re.compile(r"\n+")

# Unicode general categories that carry no meaning on their own
_NOISE_CATEGORIES = ("Z", "P", "S")


def preprocess_input(text: str) -> str:
    """Trim and collapse whitespace.

    Whitespace runs (newlines included) collapse to a single space first, so
    the newline pass only matters for inputs that never had whitespace runs.
    """
    processed = text.strip()
    processed = _WHITESPACE_RUN.sub(" ", processed)
    return _NEWLINE_RUN.sub("\n", processed)


def _is_noise(char: str) -> bool:
    return char.isspace() or unicodedata.category(char)[0] in _NOISE_CATEGORIES


def has_meaningful_content(text: str) -> bool:
    """True when at least one character is not whitespace, punctuation or a symbol."""
    return any(not _is_noise(char) for char in text)


def validate_input(text: str) -> None:
    """Reject empty, too short, too long or meaningless input.

    Raises:
        RequestValidationFailure: With code INVALID_INPUT and a user-facing message
    """
    if not text:
        raise RequestValidationFailure(ErrorCode.INVALID_INPUT, "할 일을 입력해주세요.")

    if len(text) < Constants.INPUT_MIN_LENGTH:
        raise RequestValidationFailure(
            ErrorCode.INVALID_INPUT, f"최소 {Constants.INPUT_MIN_LENGTH}자 이상 입력해주세요."
        )

    if len(text) > Constants.INPUT_MAX_LENGTH:
        raise RequestValidationFailure(
            ErrorCode.INVALID_INPUT,
            f"최대 {Constants.INPUT_MAX_LENGTH}자까지 입력 가능합니다. (현재: {len(text)}자)",
        )

    if not has_meaningful_content(text):
        raise RequestValidationFailure(ErrorCode.INVALID_INPUT, "의미 있는 내용을 입력해주세요.")


def extract_input(body: Any) -> str:
    """Pull the `input` string out of a decoded request body.

    Raises:
        RequestValidationFailure: INVALID_REQUEST_FORMAT when the body is not an object,
            MISSING_INPUT when `input` is absent, empty or not a string
    """
    if not isinstance(body, dict):
        raise RequestValidationFailure(ErrorCode.INVALID_REQUEST_FORMAT, "잘못된 요청 형식입니다.")

    raw = body.get("input")
    if not raw or not isinstance(raw, str):
        raise RequestValidationFailure(ErrorCode.MISSING_INPUT, "입력 텍스트가 필요합니다.")
    return raw


def prepare_input(body: Any) -> str:
    """Extract, normalize and validate the parser input from a request body."""
    text = preprocess_input(extract_input(body))
    validate_input(text)
    return text
