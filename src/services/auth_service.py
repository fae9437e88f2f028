"""Auth service backed by the PocketBase `users` auth collection."""

import asyncio
import logging
from typing import Any

from pocketbase.client import ClientResponseError

from src.core import db_client
from src.core.config import Constants
from src.core.errors import AlreadyRegisteredError, AuthError, InvalidCredentialsError, WeakPasswordError
from src.core.logging import span
from src.domain.user import ProfileUpdate, Session, User
from src.services import todo_service


logger = logging.getLogger(__name__)

COLLECTION = "users"

# PocketBase field validation codes
_NOT_UNIQUE = "validation_not_unique"
_PASSWORD_CODES = {"validation_min_text_constraint", "validation_length_out_of_range", "validation_required"}


def record_to_user(record: dict[str, Any]) -> User:
    """Convert a users record; a missing notification flag means enabled."""
    enabled = record.get("email_notification_enabled")
    return User(
        id=record["id"],
        email=record.get("email") or "",
        name=record.get("name") or "",
        email_notification_enabled=True if enabled is None else bool(enabled),
    )


def _field_errors(e: ClientResponseError) -> dict[str, Any]:
    """Extract per-field validation errors from a PocketBase error response."""
    data = e.data if isinstance(e.data, dict) else {}
    fields = data.get("data")
    return fields if isinstance(fields, dict) else {}


def _check_password_strength(password: str) -> None:
    if len(password) < Constants.MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(f"Password must be at least {Constants.MIN_PASSWORD_LENGTH} characters")


async def sign_up(*, email: str, password: str, name: str = "") -> User:
    """Register a new account with notifications enabled.

    Raises:
        WeakPasswordError: Password shorter than the minimum or rejected by the backend
        AlreadyRegisteredError: Email already in use
        AuthError: Any other backend failure
    """
    with span("auth_service.sign_up"):
        _check_password_strength(password)

        client = db_client.new_client()
        data = {
            "email": email,
            "password": password,
            "passwordConfirm": password,
            "name": name,
            "email_notification_enabled": True,
        }
        try:
            record = await asyncio.to_thread(client.collection(COLLECTION).create, data)
        except ClientResponseError as e:
            errors = _field_errors(e)
            if errors.get("email", {}).get("code") == _NOT_UNIQUE:
                logger.info("signup_rejected_duplicate_email")
                raise AlreadyRegisteredError("Email already registered") from e
            if errors.get("password", {}).get("code") in _PASSWORD_CODES:
                raise WeakPasswordError("Password rejected by auth backend") from e
            logger.error("signup_failed", extra={"status": e.status, "error": str(e)})
            raise AuthError(f"Sign up failed: {e}") from e

        user = record_to_user(db_client.record_to_dict(record))
        logger.info("user_signed_up", extra={"user_id": user.id})
        return user


async def sign_in(*, email: str, password: str) -> Session:
    """Authenticate with email and password.

    Raises:
        InvalidCredentialsError: Wrong email or password
        AuthError: Any other backend failure
    """
    with span("auth_service.sign_in"):
        client = db_client.new_client()
        try:
            result = await asyncio.to_thread(client.collection(COLLECTION).auth_with_password, email, password)
        except ClientResponseError as e:
            if e.status in (Constants.HTTP_BAD_REQUEST, Constants.HTTP_UNAUTHORIZED, Constants.HTTP_NOT_FOUND):
                logger.info("signin_rejected", extra={"status": e.status})
                raise InvalidCredentialsError("Invalid email or password") from e
            logger.error("signin_failed", extra={"status": e.status, "error": str(e)})
            raise AuthError(f"Sign in failed: {e}") from e

        user = record_to_user(db_client.record_to_dict(result.record))
        logger.info("user_signed_in", extra={"user_id": user.id})
        return Session(token=result.token, user=user)


async def sign_out(*, token: str) -> None:
    """End a session.

    PocketBase tokens are stateless, so signing out only discards the client-side
    auth state; the token expires on its own.
    """
    client = db_client.new_client()
    client.auth_store.save(token, None)
    client.auth_store.clear()
    logger.info("user_signed_out")


async def get_current_user(*, token: str) -> User | None:
    """Resolve the user behind a session token, or None when the token is invalid."""
    with span("auth_service.get_current_user"):
        if not token:
            return None

        client = db_client.new_client()
        client.auth_store.save(token, None)
        try:
            result = await asyncio.to_thread(client.collection(COLLECTION).auth_refresh)
        except ClientResponseError as e:
            if e.status >= Constants.HTTP_SERVER_ERROR or e.status == 0:
                logger.error("session_lookup_failed", extra={"status": e.status, "error": str(e)})
                raise AuthError(f"Session lookup failed: {e}") from e
            return None

        return record_to_user(db_client.record_to_dict(result.record))


async def get_user_by_id(*, user_id: str) -> User | None:
    """Privileged lookup of an account by ID; None if it does not exist."""
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=user_id)
    except db_client.RecordNotFoundError:
        return None
    return record_to_user(record)


async def update_profile(*, user: User, fields: ProfileUpdate) -> User:
    """Update display name, notification preference and/or password.

    Changing the password requires the current one.

    Raises:
        WeakPasswordError: New password too short
        InvalidCredentialsError: Current password missing or wrong
    """
    with span("auth_service.update_profile"):
        changes = fields.model_dump(exclude_unset=True, exclude={"password", "old_password"})
        # Explicit nulls clear nothing
        data: dict[str, Any] = {key: value for key, value in changes.items() if value is not None}

        if fields.password is not None:
            _check_password_strength(fields.password)
            if not fields.old_password:
                raise InvalidCredentialsError("Current password is required")
            await sign_in(email=user.email, password=fields.old_password)
            data["password"] = fields.password
            data["passwordConfirm"] = fields.password

        if not data:
            return user

        record = await db_client.update_record(collection=COLLECTION, record_id=user.id, data=data)
        logger.info(
            "profile_updated",
            extra={"user_id": user.id, "fields": sorted(k for k in data if k != "passwordConfirm")},
        )
        return record_to_user(record)


async def delete_account(*, user_id: str) -> None:
    """Privileged account deletion: the user's todos first, then the account itself."""
    with span("auth_service.delete_account"):
        try:
            removed = await todo_service.delete_all_for_owner(owner=user_id)
        except db_client.DatabaseError as e:
            # The account is still removed; leftover todos are cascade-deleted by the relation
            logger.warning("account_todos_cleanup_failed", extra={"user_id": user_id, "error": str(e)})
            removed = 0
        await db_client.delete_record(collection=COLLECTION, record_id=user_id)
        logger.info("account_deleted", extra={"user_id": user_id, "todos_removed": removed})


async def request_password_reset(*, email: str) -> None:
    """Ask the backend to send a password reset email.

    The backend answers the same way for unknown addresses, so callers cannot
    probe for registered emails.
    """
    with span("auth_service.request_password_reset"):
        client = db_client.new_client()
        try:
            await asyncio.to_thread(client.collection(COLLECTION).request_password_reset, email)
        except ClientResponseError as e:
            logger.error("password_reset_failed", extra={"status": e.status, "error": str(e)})
            raise AuthError(f"Password reset request failed: {e}") from e
        logger.info("password_reset_requested")
