"""Shared FastAPI dependencies and error response helpers."""

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.config import settings
from src.core.errors import AuthError, RequestValidationFailure, UpstreamServiceError
from src.domain.user import User
from src.services import auth_service


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def require_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Extract the bearer token or fail with 401."""
    if credentials is None or not credentials.credentials:
        logger.warning("auth_missing_bearer", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="인증되지 않은 사용자입니다.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_user(request: Request, token: str = Depends(require_token)) -> User:
    """Resolve the signed-in user from the bearer token or fail with 401."""
    try:
        user = await auth_service.get_current_user(token=token)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="인증 서버에 연결할 수 없습니다.") from e

    if user is None:
        logger.warning("auth_invalid_token", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="인증되지 않은 사용자입니다.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def error_response(*, message: str, code: str, status_code: int, details: str | None = None) -> JSONResponse:
    """Render `{error, code, details?}`; details are only exposed outside production."""
    content: dict[str, str] = {"error": message, "code": code}
    if details and not settings.is_production:
        content["details"] = details
    return JSONResponse(content=content, status_code=status_code)


def validation_failure_response(error: RequestValidationFailure) -> JSONResponse:
    """Render a request validation failure."""
    return error_response(message=error.message, code=error.code, status_code=error.status_code)


def upstream_error_response(error: UpstreamServiceError) -> JSONResponse:
    """Render a classified model failure."""
    return error_response(message=error.message, code=error.code, status_code=error.status_code, details=error.detail)
