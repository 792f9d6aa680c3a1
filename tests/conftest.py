# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from koradi_board.core.settings import Settings
from koradi_board.main import create_app
from koradi_board.services.message_store import MessageStore

TEST_API_KEY = "test-admin-key"


class FakeClock:
    """Manually advanced clock returning timezone-aware UTC instants."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> MessageStore:
    """Empty message store driven by the fake clock."""
    return MessageStore(clock=clock)


@pytest.fixture()
def test_settings() -> Settings:
    """Settings isolated from the environment: admin key set, limiter off."""
    return Settings(
        ADMIN_API_KEY=TEST_API_KEY,
        RATE_LIMIT_ENABLED=False,
        BACKUP_ENABLED=False,
        TOKEN_BACKEND="memory",
        SWEEP_INTERVAL_SECONDS=3600,
        _env_file=None,
    )


@pytest.fixture()
def app(test_settings: Settings, store: MessageStore) -> FastAPI:
    return create_app(test_settings, store=store)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"x-api-key": TEST_API_KEY}


@pytest.fixture()
def message_payload() -> Callable[..., dict[str, object]]:
    """Factory for valid create payloads with overrides applied."""

    def _build(**overrides: object) -> dict[str, object]:
        payload: dict[str, object] = {
            "content": "Road closed until Friday",
            "title": "Notice",
            "lang": "English",
            "expires": "Day",
        }
        payload.update(overrides)
        return payload

    return _build
