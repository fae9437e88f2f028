"""PocketBase client wrapper with CRUD operations.

The PocketBase SDK is synchronous; each call runs in a worker thread so request
handlers stay non-blocking. Every function raises RecordNotFoundError for missing
records and DatabaseError for any other backend failure.
"""

import asyncio
import json
import logging
import re
from datetime import UTC, datetime
from typing import Any

from pocketbase import PocketBase
from pocketbase.client import ClientResponseError

from src.core.config import Constants, settings


logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Storage backend failure."""


class RecordNotFoundError(DatabaseError):
    """Requested record does not exist (or is not visible to the caller)."""


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in PocketBase filter strings via json.dumps."""
    return json.dumps(str(value))[1:-1]


def format_datetime(value: datetime) -> str:
    """Format a datetime the way PocketBase stores and compares date fields (UTC)."""
    value = value.astimezone(UTC) if value.tzinfo else value
    return value.strftime("%Y-%m-%d %H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class _ClientState:
    """Singleton state for the privileged PocketBase client."""

    admin: PocketBase | None = None


def new_client() -> PocketBase:
    """Create an unauthenticated PocketBase client (used for end-user auth flows)."""
    return PocketBase(settings.pocketbase_url)


def get_admin_client() -> PocketBase:
    """Get or create the admin-authenticated PocketBase client."""
    if _ClientState.admin is None:
        client = new_client()
        try:
            client.admins.auth_with_password(settings.pocketbase_admin_email, settings.pocketbase_admin_password)
        except ClientResponseError as e:
            logger.error("pocketbase_admin_auth_failed", extra={"status": e.status, "error": str(e)})
            msg = f"Failed to authenticate with PocketBase: {e}"
            raise DatabaseError(msg) from e
        _ClientState.admin = client
        logger.info("Authenticated PocketBase admin client", extra={"url": settings.pocketbase_url})
    return _ClientState.admin


def reset_admin_client() -> None:
    """Drop the cached admin client so the next call re-authenticates."""
    _ClientState.admin = None


def record_to_dict(record: Any) -> dict[str, Any]:
    """Convert a PocketBase SDK record into a plain dict."""
    if isinstance(record, dict):
        return dict(record)
    return {key: value for key, value in vars(record).items() if not key.startswith("_")}


def _serialize(data: dict[str, Any]) -> dict[str, Any]:
    """Convert datetimes into PocketBase date strings."""
    return {key: format_datetime(val) if isinstance(val, datetime) else val for key, val in data.items()}


def _translate_error(e: ClientResponseError, *, action: str, collection: str, record_id: str | None = None) -> Exception:
    """Translate an SDK error into the storage taxonomy."""
    if e.status == Constants.HTTP_NOT_FOUND:
        return RecordNotFoundError(f"Record not found in {collection}: {record_id}")
    if e.status == Constants.HTTP_UNAUTHORIZED:
        reset_admin_client()
    logger.error(
        f"{action}_failed",
        extra={"collection": collection, "record_id": record_id, "status": e.status, "error": str(e)},
    )
    return DatabaseError(f"Failed to {action.replace('_', ' ')} in {collection}: {e}")


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    _validate_collection_name(collection)
    client = get_admin_client()
    try:
        record = await asyncio.to_thread(client.collection(collection).create, _serialize(data))
    except ClientResponseError as e:
        raise _translate_error(e, action="create_record", collection=collection) from e

    result = record_to_dict(record)
    logger.info("Created record", extra={"collection": collection, "record_id": result.get("id")})
    return result


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    client = get_admin_client()
    try:
        record = await asyncio.to_thread(client.collection(collection).get_one, record_id)
    except ClientResponseError as e:
        raise _translate_error(e, action="get_record", collection=collection, record_id=record_id) from e

    logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
    return record_to_dict(record)


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID and return the updated record."""
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    _validate_collection_name(collection)
    client = get_admin_client()
    try:
        record = await asyncio.to_thread(client.collection(collection).update, record_id, _serialize(data))
    except ClientResponseError as e:
        raise _translate_error(e, action="update_record", collection=collection, record_id=record_id) from e

    logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
    return record_to_dict(record)


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    client = get_admin_client()
    try:
        await asyncio.to_thread(client.collection(collection).delete, record_id)
    except ClientResponseError as e:
        raise _translate_error(e, action="delete_record", collection=collection, record_id=record_id) from e

    logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = Constants.DEFAULT_PER_PAGE_LIMIT,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    _validate_collection_name(collection)
    client = get_admin_client()

    # Only include filter and sort in query_params if they're not empty
    query_params: dict[str, str] = {}
    if sort:
        query_params["sort"] = sort
    if filter_query:
        query_params["filter"] = filter_query

    try:
        result = await asyncio.to_thread(
            client.collection(collection).get_list,
            page,
            per_page,
            query_params,
        )
    except ClientResponseError as e:
        raise _translate_error(e, action="list_records", collection=collection) from e

    records = [record_to_dict(item) for item in result.items]
    logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
    return records


async def list_all_records(*, collection: str, filter_query: str = "", sort: str = "") -> list[dict[str, Any]]:
    """List every matching record, fetching page by page."""
    _validate_collection_name(collection)
    client = get_admin_client()

    query_params: dict[str, str] = {}
    if sort:
        query_params["sort"] = sort
    if filter_query:
        query_params["filter"] = filter_query

    try:
        items = await asyncio.to_thread(
            client.collection(collection).get_full_list,
            Constants.DEFAULT_PER_PAGE_LIMIT,
            query_params,
        )
    except ClientResponseError as e:
        raise _translate_error(e, action="list_all_records", collection=collection) from e

    records = [record_to_dict(item) for item in items]
    logger.debug("Listed all records", extra={"collection": collection, "count": len(records)})
    return records
