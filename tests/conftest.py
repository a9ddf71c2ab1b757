"""Shared pytest fixtures.

db      - the process-wide ``Database`` handle connected to an in-memory
          mongomock database (fresh database name per test).
client  - httpx.AsyncClient against the FastAPI app, backed by ``db``.

Nothing here needs a live MongoDB or network access; Graph API calls are
mocked per test with respx.
"""
import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

# Must be set before application modules read their configuration
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("CLIENT_ID", "test-client-id")
os.environ.setdefault("CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("REDIRECT_URI", "http://localhost:3000/callback")

from app import config  # noqa: E402
from app.db import database  # noqa: E402

GRAPH = config.GRAPH_API_BASE


@pytest.fixture(autouse=True)
def fast_config(monkeypatch):
    monkeypatch.setattr(config, "TOKEN_RETRY_DELAY_SECONDS", 0)
    monkeypatch.setattr(config, "IS_SERVERLESS", False)
    monkeypatch.setattr(config, "SELF_UPDATE_URL", None)
    monkeypatch.setattr(config, "CRON_SECRET", "")


@pytest_asyncio.fixture
async def db(monkeypatch):
    monkeypatch.setattr(config, "MONGODB_URI", "mongodb://mongomock")
    monkeypatch.setattr(config, "MONGODB_DB", f"test_{uuid.uuid4().hex}")
    monkeypatch.setattr(database, "client_factory", lambda uri: AsyncMongoMockClient())
    # Undone after the test, which leaves the handle disconnected again
    monkeypatch.setattr(database, "client", None)
    monkeypatch.setattr(database, "_pending", None)
    await database.connect()
    yield database


@pytest_asyncio.fixture
async def client(db):
    from main import app
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


def media_post(post_id, media_type="IMAGE", **fields):
    return {"id": post_id, "media_type": media_type, "media_url": f"https://cdn.example/{post_id}.jpg", **fields}
