"""Static markdown content served as JSON (changelog, terms of service)."""

import logging
from pathlib import Path

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.core.config import constants


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["content"])


def _markdown_response(path: Path, *, error_message: str) -> JSONResponse:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("content_read_failed", extra={"path": str(path), "error": str(e)})
        return JSONResponse(content={"error": error_message}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(content={"content": content})


@router.get("/changelog")
async def get_changelog() -> JSONResponse:
    """Return CHANGELOG.md."""
    return _markdown_response(constants.CHANGELOG_PATH, error_message="변경 이력을 불러오는데 실패했습니다.")


@router.get("/terms")
async def get_terms() -> JSONResponse:
    """Return the terms of service."""
    return _markdown_response(constants.TERMS_PATH, error_message="이용약관을 불러오는데 실패했습니다.")
