"""Pytest configuration and fixtures for unit tests."""

from unittest.mock import AsyncMock

import pytest

from src.domain.user import User
from src.interface.dependencies import get_current_user
from src.main import app
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches src.core.db_client functions to use InMemoryDBClient."""

    # Patch all db_client functions
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("src.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.list_all_records", in_memory_db.list_all_records)

    return in_memory_db


@pytest.fixture
def mock_email_sender(monkeypatch) -> AsyncMock:
    """Replace Resend delivery with an AsyncMock that reports a message id."""
    sender = AsyncMock(return_value="email_123")
    monkeypatch.setattr("src.interface.email_sender.send_overdue_digest", sender)
    return sender


@pytest.fixture
def sample_user() -> User:
    """Returns a signed-in user for router tests."""
    return User(id="user_a", email="kim@example.com", name="김철수", email_notification_enabled=True)


@pytest.fixture
def signed_in(sample_user):
    """Bypass bearer auth so routes see sample_user."""
    app.dependency_overrides[get_current_user] = lambda: sample_user
    yield sample_user
    app.dependency_overrides.pop(get_current_user, None)
