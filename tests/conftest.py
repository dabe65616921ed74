from __future__ import annotations

import asyncio
from collections.abc import Generator
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from backend.app.core import config
from backend.db import create_engine, create_session_factory, init_db

TEST_USERNAME = "alice"
TEST_EMAIL = "alice@gmail.com"
TEST_PASSWORD = "Secret#123"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def app_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    """Anonymous client bound to a fresh SQLite database."""

    monkeypatch.setenv("VERSION", "0.1.0-test")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / f'api_{uuid4().hex}.db'}")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "daybook.log"))
    config.get_settings.cache_clear()

    from backend.app.main import app

    try:
        with TestClient(app) as client:
            yield client
    finally:
        config.get_settings.cache_clear()


@pytest.fixture()
def test_client(app_client: TestClient) -> TestClient:
    """Client with a registered user and an active session cookie."""

    register = app_client.post(
        "/api/v1/auth/register",
        json={
            "username": TEST_USERNAME,
            "email": TEST_EMAIL,
            "password": TEST_PASSWORD,
            "confirm_password": TEST_PASSWORD,
        },
    )
    assert register.status_code == 201, register.text
    login = app_client.post(
        "/api/v1/auth/login",
        json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
    )
    assert login.status_code == 200, login.text
    return app_client


@pytest.fixture()
def temp_session_factory(tmp_path: Path):
    db_path = tmp_path / f"unit_{uuid4().hex}.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_engine(database_url)
    session_factory = create_session_factory(engine)

    async def _prepare() -> None:
        await init_db(engine, session_factory, "test")
        # drop pooled connections bound to this bootstrap loop
        await engine.dispose()

    asyncio.run(_prepare())
    try:
        yield session_factory
    finally:
        asyncio.run(engine.dispose())
