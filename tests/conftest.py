"""Pytest configuration and shared fixtures."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from src.agents.agent_instance import reset_agents
from src.core.config import settings
from src.main import app


@pytest.fixture
def client() -> Generator[TestClient]:
    """HTTP client for the app without running the lifespan (no scheduler, no Logfire)."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def cron_secret(monkeypatch) -> str:
    """Configure a known cron secret for the duration of a test."""
    secret = "test-cron-secret"
    monkeypatch.setattr(settings, "cron_secret", secret)
    return secret


@pytest.fixture(autouse=True)
def _fresh_agents() -> Generator[None]:
    """Agents are cached per process; drop them so settings changes take effect."""
    reset_agents()
    yield
    reset_agents()
