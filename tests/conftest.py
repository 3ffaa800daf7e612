"""Shared fixtures: SQLite-backed app, async HTTP client and token minting.

Every test gets a fresh SQLite file database with the invoices table created.
"""

import time

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from billing_server.config import Settings
from billing_server.database import create_schema
from billing_server.main import create_app

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


def _make_token(username="alice", secret=TEST_SECRET, **claims):
    payload = {"username": username, "exp": int(time.time()) + 300}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return Settings(
        _env_file=None,
        jwt_secret=TEST_SECRET,
        database_url="sqlite+aiosqlite://",
        query_timeout_seconds=5.0,
    )


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'billing.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def token_factory():
    return _make_token


@pytest.fixture
def auth_headers():
    return {"Authorization": _make_token()}
