"""Unit tests for auth_service module."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from pocketbase.client import ClientResponseError

from src.core.errors import AlreadyRegisteredError, AuthError, InvalidCredentialsError, WeakPasswordError
from src.domain.user import ProfileUpdate, User
from src.services import auth_service


def _user_record(**overrides):
    data = {"id": "user_a", "email": "kim@example.com", "name": "김철수", "email_notification_enabled": True}
    data.update(overrides)
    return SimpleNamespace(**data)


@pytest.fixture
def pb_client(monkeypatch) -> MagicMock:
    """Replace the unauthenticated PocketBase client with a MagicMock."""
    client = MagicMock()
    monkeypatch.setattr("src.core.db_client.new_client", lambda: client)
    return client


@pytest.mark.unit
class TestRecordToUser:
    """Tests for record_to_user."""

    def test_missing_flag_means_enabled(self):
        """Test that records without the notification flag default to enabled."""
        user = auth_service.record_to_user({"id": "u1", "email": "a@b.co", "email_notification_enabled": None})

        assert user.email_notification_enabled is True

    def test_display_name_falls_back_to_email(self):
        """Test that an empty name falls back to the email local part."""
        user = auth_service.record_to_user({"id": "u1", "email": "hong@example.com", "name": ""})

        assert user.display_name == "hong"


@pytest.mark.unit
class TestSignUp:
    """Tests for sign_up."""

    async def test_sign_up_success(self, pb_client):
        """Test that a new account is created with notifications enabled."""
        pb_client.collection.return_value.create.return_value = _user_record()

        user = await auth_service.sign_up(email="kim@example.com", password="password123", name="김철수")

        assert user.id == "user_a"
        payload = pb_client.collection.return_value.create.call_args.args[0]
        assert payload["passwordConfirm"] == "password123"
        assert payload["email_notification_enabled"] is True

    async def test_short_password_rejected_before_backend(self, pb_client):
        """Test that a short password never reaches the backend."""
        with pytest.raises(WeakPasswordError):
            await auth_service.sign_up(email="kim@example.com", password="short")

        pb_client.collection.return_value.create.assert_not_called()

    async def test_duplicate_email(self, pb_client):
        """Test that a uniqueness violation maps to AlreadyRegisteredError."""
        pb_client.collection.return_value.create.side_effect = ClientResponseError(
            "Failed to create record.",
            status=400,
            data={"data": {"email": {"code": "validation_not_unique", "message": "must be unique"}}},
        )

        with pytest.raises(AlreadyRegisteredError):
            await auth_service.sign_up(email="kim@example.com", password="password123")

    async def test_other_backend_failure(self, pb_client):
        """Test that unknown failures surface as AuthError."""
        pb_client.collection.return_value.create.side_effect = ClientResponseError("boom", status=500, data={})

        with pytest.raises(AuthError):
            await auth_service.sign_up(email="kim@example.com", password="password123")


@pytest.mark.unit
class TestSignIn:
    """Tests for sign_in and get_current_user."""

    async def test_sign_in_returns_session(self, pb_client):
        """Test that a successful login returns the token and user."""
        pb_client.collection.return_value.auth_with_password.return_value = SimpleNamespace(
            token="tok_123", record=_user_record()
        )

        session = await auth_service.sign_in(email="kim@example.com", password="password123")

        assert session.token == "tok_123"
        assert session.user.name == "김철수"

    async def test_wrong_password(self, pb_client):
        """Test that a rejected login raises InvalidCredentialsError."""
        pb_client.collection.return_value.auth_with_password.side_effect = ClientResponseError(
            "Failed to authenticate.", status=400, data={}
        )

        with pytest.raises(InvalidCredentialsError):
            await auth_service.sign_in(email="kim@example.com", password="wrongpass")

    async def test_current_user_from_token(self, pb_client):
        """Test that a valid token resolves to its user."""
        pb_client.collection.return_value.auth_refresh.return_value = SimpleNamespace(
            token="tok_new", record=_user_record()
        )

        user = await auth_service.get_current_user(token="tok_123")

        assert user is not None
        assert user.id == "user_a"
        pb_client.auth_store.save.assert_called_once_with("tok_123", None)

    async def test_invalid_token_returns_none(self, pb_client):
        """Test that a rejected token resolves to no user."""
        pb_client.collection.return_value.auth_refresh.side_effect = ClientResponseError("expired", status=401, data={})

        assert await auth_service.get_current_user(token="tok_old") is None

    async def test_backend_down_raises(self, pb_client):
        """Test that an unreachable backend is an error, not an anonymous user."""
        pb_client.collection.return_value.auth_refresh.side_effect = ClientResponseError("down", status=0, data={})

        with pytest.raises(AuthError):
            await auth_service.get_current_user(token="tok_123")

    async def test_empty_token(self, pb_client):
        """Test that an empty token short-circuits to None."""
        assert await auth_service.get_current_user(token="") is None
        pb_client.collection.assert_not_called()


@pytest.mark.unit
class TestUpdateProfile:
    """Tests for update_profile."""

    @pytest.fixture
    def user(self, patched_db) -> User:
        """A stored user record."""
        patched_db.seed("users", id="user_a", email="kim@example.com", name="김철수", email_notification_enabled=True)
        return User(id="user_a", email="kim@example.com", name="김철수")

    async def test_toggle_notifications(self, user, patched_db):
        """Test that the notification flag can be turned off."""
        updated = await auth_service.update_profile(user=user, fields=ProfileUpdate(email_notification_enabled=False))

        assert updated.email_notification_enabled is False
        assert patched_db.all("users")[0]["email_notification_enabled"] is False

    async def test_empty_update_returns_user(self, user):
        """Test that nothing is written when no fields are set."""
        assert await auth_service.update_profile(user=user, fields=ProfileUpdate()) == user

    async def test_password_change_requires_old_password(self, user):
        """Test that a new password without the current one is rejected."""
        with pytest.raises(InvalidCredentialsError):
            await auth_service.update_profile(user=user, fields=ProfileUpdate(password="newpassword1"))

    async def test_password_change_verifies_old_password(self, user, patched_db, pb_client):
        """Test that the current password is checked before the new one is stored."""
        pb_client.collection.return_value.auth_with_password.return_value = SimpleNamespace(
            token="tok", record=_user_record()
        )

        await auth_service.update_profile(
            user=user, fields=ProfileUpdate(password="newpassword1", old_password="password123")
        )

        pb_client.collection.return_value.auth_with_password.assert_called_once_with("kim@example.com", "password123")
        stored = patched_db.all("users")[0]
        assert stored["password"] == stored["passwordConfirm"] == "newpassword1"

    async def test_short_new_password(self, user):
        """Test that a short new password is rejected."""
        with pytest.raises(WeakPasswordError):
            await auth_service.update_profile(user=user, fields=ProfileUpdate(password="short", old_password="x"))


@pytest.mark.unit
class TestDeleteAccount:
    """Tests for delete_account."""

    async def test_deletes_todos_then_account(self, patched_db):
        """Test that the user's todos and the account are both removed."""
        patched_db.seed("users", id="user_a", email="kim@example.com")
        patched_db.seed("todos", user="user_a", title="a")
        patched_db.seed("todos", user="user_b", title="b")

        await auth_service.delete_account(user_id="user_a")

        assert patched_db.all("users") == []
        assert [t["title"] for t in patched_db.all("todos")] == ["b"]

    async def test_todo_cleanup_failure_still_deletes_account(self, patched_db):
        """Test that a failing todo cleanup does not block account deletion."""
        patched_db.seed("users", id="user_a", email="kim@example.com")
        patched_db.fail_on.add("list_records")

        await auth_service.delete_account(user_id="user_a")

        assert patched_db.all("users") == []


@pytest.mark.unit
async def test_get_user_by_id_missing(patched_db):
    """Test that an unknown user id resolves to None."""
    assert await auth_service.get_user_by_id(user_id="ghost") is None
