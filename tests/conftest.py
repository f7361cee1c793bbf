from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.config import get_settings
from app.db.session import dispose_engines
from app.logs.models import LogEntry, LogLevel
from app.logs.store import InMemoryLogStore
from app.main import create_app


def _make_entry(
    status_code: int = 200,
    response_time_ms: int = 10,
    endpoint: str | None = "/api/people",
    http_method: str | None = "GET",
    level: LogLevel | str | None = None,
    timestamp: datetime | None = datetime(2025, 5, 15, 14, 30, tzinfo=timezone.utc),
) -> LogEntry:
    if level is None:
        level = LogLevel.ERROR if status_code >= 500 else LogLevel.INFO
    return LogEntry(
        timestamp=timestamp,
        level=level,
        message="test",
        endpoint=endpoint,
        http_method=http_method,
        status_code=status_code,
        response_time_ms=response_time_ms,
    )


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("LOG_STORE_BACKEND", "memory")
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()
    dispose_engines()


@pytest.fixture
def log_store() -> InMemoryLogStore:
    return InMemoryLogStore()


@pytest.fixture
def app(log_store: InMemoryLogStore) -> FastAPI:
    return create_app(log_store=log_store)


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    # Unhandled handler errors come back as 500 responses instead of raising in the test.
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_entry():
    return _make_entry
