"""Auth and account endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from src.core.db_client import DatabaseError
from src.core.errors import AlreadyRegisteredError, AuthError, InvalidCredentialsError, WeakPasswordError
from src.domain.user import PasswordResetRequest, ProfileUpdate, Session, SignInRequest, SignUpRequest, User
from src.interface.dependencies import get_current_user, require_token
from src.services import auth_service


logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _auth_http_error(error: AuthError) -> HTTPException:
    """Map auth failures onto HTTP statuses with user-facing messages."""
    if isinstance(error, InvalidCredentialsError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="이메일 또는 비밀번호가 올바르지 않습니다.")
    if isinstance(error, AlreadyRegisteredError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="이미 가입된 이메일입니다.")
    if isinstance(error, WeakPasswordError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="비밀번호는 최소 8자 이상이어야 합니다.")
    logger.error("auth_backend_error", extra={"error": str(error)})
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="인증 처리 중 오류가 발생했습니다.")


@router.post("/api/auth/signup", status_code=status.HTTP_201_CREATED)
async def sign_up(body: SignUpRequest) -> User:
    """Create an account."""
    try:
        return await auth_service.sign_up(email=body.email, password=body.password, name=body.name)
    except AuthError as e:
        raise _auth_http_error(e) from e


@router.post("/api/auth/login")
async def sign_in(body: SignInRequest) -> Session:
    """Exchange email and password for a bearer token."""
    try:
        return await auth_service.sign_in(email=body.email, password=body.password)
    except AuthError as e:
        raise _auth_http_error(e) from e


@router.post("/api/auth/logout")
async def sign_out(token: str = Depends(require_token)) -> JSONResponse:
    """End the current session."""
    await auth_service.sign_out(token=token)
    return JSONResponse(content={"success": True})


@router.get("/api/auth/me")
async def me(user: User = Depends(get_current_user)) -> User:
    """Return the signed-in user."""
    return user


@router.patch("/api/auth/profile")
async def update_profile(body: ProfileUpdate, user: User = Depends(get_current_user)) -> User:
    """Update name, notification preference or password."""
    try:
        return await auth_service.update_profile(user=user, fields=body)
    except AuthError as e:
        raise _auth_http_error(e) from e


@router.post("/api/auth/password-reset")
async def request_password_reset(body: PasswordResetRequest) -> JSONResponse:
    """Send a password reset email if the address is registered."""
    try:
        await auth_service.request_password_reset(email=body.email)
    except AuthError as e:
        raise _auth_http_error(e) from e
    return JSONResponse(content={"success": True})


@router.delete("/api/account")
async def delete_account(user: User = Depends(get_current_user)) -> JSONResponse:
    """Permanently delete the signed-in account and its todos."""
    try:
        await auth_service.delete_account(user_id=user.id)
    except DatabaseError as e:
        logger.error("account_delete_failed", extra={"user_id": user.id, "error": str(e)})
        return JSONResponse(
            content={"error": "계정 삭제에 실패했습니다. 다시 시도해주세요."},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return JSONResponse(content={"success": True, "message": "계정이 완전히 삭제되었습니다."})
