"""PocketBase collection definitions and idempotent schema sync."""

import logging
from typing import Any

import httpx
from pocketbase import PocketBase
from pocketbase.client import ClientResponseError

from src.core.config import Constants, settings


logger = logging.getLogger(__name__)


# Collections in dependency order (relations point backwards)
COLLECTIONS = ["users", "todos", "feedback"]

# API rule keys that can be set on collections
_API_RULE_KEYS = ("listRule", "viewRule", "createRule", "updateRule", "deleteRule")

_OWNER_RULE = "user = @request.auth.id"


def _get_collection_schema(*, collection_name: str, collection_ids: dict[str, str] | None = None) -> dict[str, Any]:
    """Return the desired schema for a collection.

    PocketBase v0.22+ uses flattened 'fields' and requires real collection IDs in
    relation fields, so `collection_ids` maps names to IDs resolved during sync.
    """
    ids = collection_ids or {}
    users_id = ids.get("users", "users")

    schemas: dict[str, dict[str, Any]] = {
        "users": {
            "name": "users",
            "type": "auth",
            "system": False,
            # Users only see and edit themselves; deletion goes through the admin client
            "listRule": "id = @request.auth.id",
            "viewRule": "id = @request.auth.id",
            "createRule": "",
            "updateRule": "id = @request.auth.id",
            "deleteRule": None,
            "fields": [
                {"name": "name", "type": "text", "required": False},
                # required=False: PocketBase rejects False on required bool fields
                {"name": "email_notification_enabled", "type": "bool", "required": False},
            ],
        },
        "todos": {
            "name": "todos",
            "type": "base",
            "system": False,
            "listRule": _OWNER_RULE,
            "viewRule": _OWNER_RULE,
            "createRule": "@request.auth.id != '' && @request.body.user = @request.auth.id",
            "updateRule": _OWNER_RULE,
            "deleteRule": _OWNER_RULE,
            "fields": [
                {
                    "name": "user",
                    "type": "relation",
                    "required": True,
                    "collectionId": users_id,
                    "cascadeDelete": True,
                    "maxSelect": 1,
                },
                {"name": "title", "type": "text", "required": True, "max": Constants.TITLE_MAX_LENGTH},
                {"name": "description", "type": "text", "required": False},
                {"name": "due_date", "type": "date", "required": False},
                {
                    "name": "priority",
                    "type": "select",
                    "required": True,
                    "values": ["high", "medium", "low"],
                    "maxSelect": 1,
                },
                {"name": "category", "type": "json", "required": False},
                {"name": "completed", "type": "bool", "required": False},
                {"name": "created", "type": "autodate", "onCreate": True, "onUpdate": False},
                {"name": "updated", "type": "autodate", "onCreate": True, "onUpdate": True},
            ],
            "indexes": [
                "CREATE INDEX idx_todos_user ON todos (user)",
                "CREATE INDEX idx_todos_due ON todos (due_date)",
            ],
        },
        "feedback": {
            "name": "feedback",
            "type": "base",
            "system": False,
            # Feedback is write-once from the owner's side
            "listRule": _OWNER_RULE,
            "viewRule": _OWNER_RULE,
            "createRule": "@request.auth.id != '' && @request.body.user = @request.auth.id",
            "updateRule": None,
            "deleteRule": None,
            "fields": [
                {
                    "name": "user",
                    "type": "relation",
                    "required": True,
                    "collectionId": users_id,
                    "cascadeDelete": True,
                    "maxSelect": 1,
                },
                {"name": "type", "type": "select", "required": True, "values": ["bug", "feature"], "maxSelect": 1},
                {"name": "title", "type": "text", "required": True},
                {"name": "description", "type": "text", "required": True},
                {
                    "name": "status",
                    "type": "select",
                    "required": False,
                    "values": ["pending", "reviewed", "resolved", "rejected"],
                    "maxSelect": 1,
                },
                {"name": "created", "type": "autodate", "onCreate": True, "onUpdate": False},
            ],
        },
    }
    return schemas[collection_name]


async def _fetch_collection(*, client: httpx.AsyncClient, collection_name: str) -> dict[str, Any] | None:
    """Fetch a collection definition, or None when it does not exist yet."""
    response = await client.get(f"/api/collections/{collection_name}")
    if response.status_code == Constants.HTTP_NOT_FOUND:
        return None
    response.raise_for_status()
    return response.json()


def _merge_fields(
    schema: dict[str, Any],
    current: dict[str, Any],
) -> tuple[list[dict[str, Any]], list[str]]:
    """Append desired fields missing from the current definition.

    Existing fields (including auth system fields) are kept untouched.

    Returns:
        Tuple of (merged_fields, fields_added).
    """
    existing = current.get("fields", [])
    existing_names = {f["name"] for f in existing}
    added = [f for f in schema.get("fields", []) if f["name"] not in existing_names]
    return [*existing, *added], [f["name"] for f in added]


def _diff_rules(schema: dict[str, Any], current: dict[str, Any]) -> dict[str, str | None]:
    """Return the API rules whose desired value differs from the current one."""
    return {key: schema[key] for key in _API_RULE_KEYS if key in schema and schema[key] != current.get(key)}


async def _sync_collection(*, client: httpx.AsyncClient, schema: dict[str, Any]) -> dict[str, Any]:
    """Create the collection or patch in missing fields and changed rules."""
    name = schema["name"]
    current = await _fetch_collection(client=client, collection_name=name)

    if current is None:
        response = await client.post("/api/collections", json=schema)
        response.raise_for_status()
        logger.info("Created collection", extra={"collection": name})
        return response.json()

    merged_fields, fields_added = _merge_fields(schema, current)
    rules = _diff_rules(schema, current)
    current_indexes = current.get("indexes") or []
    missing_indexes = [idx for idx in schema.get("indexes", []) if idx not in current_indexes]
    if not fields_added and not rules and not missing_indexes:
        logger.info("Collection schema up to date", extra={"collection": name})
        return current

    payload: dict[str, Any] = {"fields": merged_fields, **rules}
    if missing_indexes:
        payload["indexes"] = [*current_indexes, *missing_indexes]

    response = await client.patch(f"/api/collections/{name}", json=payload)
    response.raise_for_status()
    logger.info(
        "Updated collection",
        extra={"collection": name, "fields_added": fields_added, "rules_updated": list(rules)},
    )
    return response.json()


async def sync_schema(
    pocketbase_url: str | None = None,
    admin_email: str | None = None,
    admin_password: str | None = None,
) -> None:
    """Sync the PocketBase collections with the application's data model (idempotent).

    Args:
        pocketbase_url: PocketBase URL, defaults to settings.pocketbase_url
        admin_email: Admin email, defaults to settings.pocketbase_admin_email
        admin_password: Admin password, defaults to settings.pocketbase_admin_password
    """
    url = pocketbase_url or settings.pocketbase_url
    logger.info("Starting PocketBase schema sync", extra={"url": url})

    pb = PocketBase(url)
    try:
        pb.admins.auth_with_password(
            admin_email or settings.pocketbase_admin_email,
            admin_password or settings.pocketbase_admin_password,
        )
    except ClientResponseError as e:
        logger.error("schema_sync_auth_failed", extra={"status": e.status, "error": str(e)})
        raise

    async with httpx.AsyncClient(base_url=url, timeout=Constants.API_TIMEOUT_SECONDS) as http_client:
        http_client.headers["Authorization"] = f"Bearer {pb.auth_store.token}"

        collection_ids: dict[str, str] = {}
        for collection_name in COLLECTIONS:
            schema = _get_collection_schema(collection_name=collection_name, collection_ids=collection_ids)
            synced = await _sync_collection(client=http_client, schema=schema)
            collection_ids[collection_name] = synced["id"]

    logger.info("PocketBase schema sync complete")
