"""Unit tests for the PocketBase client wrapper."""

from datetime import UTC, datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from pocketbase.client import ClientResponseError

from src.core import db_client


@pytest.fixture
def admin(monkeypatch) -> MagicMock:
    """Replace the admin-authenticated client with a MagicMock."""
    client = MagicMock()
    monkeypatch.setattr(db_client._ClientState, "admin", client)
    return client


@pytest.mark.unit
class TestHelpers:
    """Pure helpers."""

    def test_sanitize_param_escapes_quotes(self):
        """Test that quotes cannot break out of a filter literal."""
        assert db_client.sanitize_param('a" || user != "') == 'a\\" || user != \\"'

    def test_format_datetime_converts_to_utc(self):
        """Test PocketBase date formatting from an aware datetime."""
        seoul = timezone(timedelta(hours=9))

        assert db_client.format_datetime(datetime(2026, 1, 10, 9, 0, 0, 123456, tzinfo=seoul)) == (
            "2026-01-10 00:00:00.123Z"
        )

    def test_record_to_dict_drops_private_attributes(self):
        """Test conversion of SDK records."""
        record = SimpleNamespace(id="r1", title="t", _private="x")

        assert db_client.record_to_dict(record) == {"id": "r1", "title": "t"}

    def test_invalid_collection_name(self):
        """Test that collection names are validated."""
        with pytest.raises(ValueError, match="Invalid collection name"):
            db_client._validate_collection_name("todos; drop")


@pytest.mark.unit
class TestCrud:
    """CRUD wrappers over the SDK."""

    async def test_create_serializes_datetimes(self, admin):
        """Test that datetimes are sent in PocketBase format."""
        admin.collection.return_value.create.return_value = SimpleNamespace(id="r1")

        await db_client.create_record(
            collection="todos", data={"due_date": datetime(2026, 1, 11, 0, 0, tzinfo=UTC), "title": "t"}
        )

        sent = admin.collection.return_value.create.call_args.args[0]
        assert sent == {"due_date": "2026-01-11 00:00:00.000Z", "title": "t"}

    async def test_get_missing_raises_not_found(self, admin):
        """Test that a 404 maps to RecordNotFoundError."""
        admin.collection.return_value.get_one.side_effect = ClientResponseError("missing", status=404, data={})

        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.get_record(collection="todos", record_id="nope")

    async def test_unauthorized_resets_admin_client(self, admin):
        """Test that a 401 drops the cached admin session."""
        admin.collection.return_value.delete.side_effect = ClientResponseError("expired", status=401, data={})

        with pytest.raises(db_client.DatabaseError):
            await db_client.delete_record(collection="todos", record_id="r1")

        assert db_client._ClientState.admin is None

    async def test_empty_update_rejected(self, admin):
        """Test that an empty payload is refused before any call."""
        with pytest.raises(ValueError):
            await db_client.update_record(collection="todos", record_id="r1", data={})

        admin.collection.assert_not_called()

    async def test_list_passes_filter_and_sort(self, admin):
        """Test query parameters of list_records."""
        admin.collection.return_value.get_list.return_value = SimpleNamespace(items=[SimpleNamespace(id="r1")])

        records = await db_client.list_records(collection="todos", filter_query='user = "a"', sort="-created")

        assert records == [{"id": "r1"}]
        admin.collection.return_value.get_list.assert_called_once_with(
            1, 500, {"sort": "-created", "filter": 'user = "a"'}
        )

    async def test_list_all_records(self, admin):
        """Test that list_all_records uses the full-list call."""
        admin.collection.return_value.get_full_list.return_value = [SimpleNamespace(id="r1"), SimpleNamespace(id="r2")]

        records = await db_client.list_all_records(collection="todos", sort="user")

        assert [r["id"] for r in records] == ["r1", "r2"]
        admin.collection.return_value.get_full_list.assert_called_once_with(500, {"sort": "user"})
