"""Unit tests for the PocketBase schema sync helpers."""

import json

import httpx
import pytest

from src.core.schema import _diff_rules, _get_collection_schema, _merge_fields, _sync_collection


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url="http://pb.test", transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestSchemaDefinitions:
    """Desired collection definitions."""

    def test_todos_relation_uses_resolved_users_id(self):
        """Test that the owner relation points at the real users collection id."""
        schema = _get_collection_schema(collection_name="todos", collection_ids={"users": "_pb_users_auth_"})

        user_field = next(f for f in schema["fields"] if f["name"] == "user")
        assert user_field["collectionId"] == "_pb_users_auth_"
        assert user_field["cascadeDelete"] is True

    def test_todos_are_owner_scoped(self):
        """Test that every todo rule restricts access to the owner."""
        schema = _get_collection_schema(collection_name="todos")

        assert schema["listRule"] == "user = @request.auth.id"
        assert schema["deleteRule"] == "user = @request.auth.id"


@pytest.mark.unit
class TestMergeHelpers:
    """Tests for _merge_fields and _diff_rules."""

    def test_merge_keeps_existing_and_appends_missing(self):
        """Test that existing fields are untouched and missing ones appended."""
        current = {"fields": [{"name": "email", "type": "email", "system": True}, {"name": "name", "type": "text"}]}
        schema = {"fields": [{"name": "name", "type": "text"}, {"name": "email_notification_enabled", "type": "bool"}]}

        merged, added = _merge_fields(schema, current)

        assert [f["name"] for f in merged] == ["email", "name", "email_notification_enabled"]
        assert added == ["email_notification_enabled"]

    def test_diff_rules(self):
        """Test that only changed rules are returned."""
        schema = {"listRule": "a", "viewRule": "b", "deleteRule": None}
        current = {"listRule": "a", "viewRule": "x", "deleteRule": ""}

        assert _diff_rules(schema, current) == {"viewRule": "b", "deleteRule": None}


@pytest.mark.unit
class TestSyncCollection:
    """Tests for _sync_collection against a fake admin API."""

    async def test_creates_missing_collection(self):
        """Test that an absent collection is created."""
        calls: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path))
            if request.method == "GET":
                return httpx.Response(404, json={})
            return httpx.Response(200, json={"id": "col_feedback", **json.loads(request.content)})

        async with _client(handler) as client:
            result = await _sync_collection(client=client, schema=_get_collection_schema(collection_name="feedback"))

        assert result["id"] == "col_feedback"
        assert calls == [("GET", "/api/collections/feedback"), ("POST", "/api/collections")]

    async def test_up_to_date_collection_not_patched(self):
        """Test that a matching collection is left alone."""
        schema = _get_collection_schema(collection_name="feedback")
        current = {**schema, "id": "col_feedback"}
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(200, json=current)

        async with _client(handler) as client:
            result = await _sync_collection(client=client, schema=schema)

        assert result["id"] == "col_feedback"
        assert methods == ["GET"]

    async def test_missing_index_triggers_patch(self):
        """Test that a missing index alone is enough to patch."""
        schema = _get_collection_schema(collection_name="todos")
        current = {**schema, "id": "col_todos", "indexes": []}
        patches: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "PATCH":
                patches.append(json.loads(request.content))
            return httpx.Response(200, json=current)

        async with _client(handler) as client:
            await _sync_collection(client=client, schema=schema)

        assert patches[0]["indexes"] == schema["indexes"]
