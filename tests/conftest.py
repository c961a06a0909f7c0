import asyncio
import itertools
import os
import sys
import tempfile
from pathlib import Path
from types import SimpleNamespace

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_DB_DIR = tempfile.mkdtemp(prefix="pixelshelf-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["ENABLE_REDIS_CACHE"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

import pixelshelf.models  # noqa: F401
from pixelshelf.db import AsyncSessionLocal, Base, engine
from pixelshelf.main import app


async def _reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture(autouse=True)
def database():
    asyncio.run(_reset_schema())
    yield


@pytest.fixture
def run_db():
    """Run ``fn(session)`` against the test database and return its result."""

    def _run(fn):
        async def _inner():
            async with AsyncSessionLocal() as session:
                return await fn(session)

        return asyncio.run(_inner())

    return _run


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def make_user(client):
    counter = itertools.count(1)

    def _make(username=None, password="password123", name=None):
        username = username or f"user{next(counter)}"
        resp = client.post("/api/auth/register", json={
            "name": name or username.title(),
            "email": f"{username}@example.com",
            "password": password,
            "username": username,
        })
        assert resp.status_code == 201, resp.text
        token = resp.json()["token"]
        headers = {"Authorization": f"Bearer {token}"}
        me = client.get("/api/auth/me", headers=headers).json()
        # register sets the session cookie; later requests must opt in to auth
        client.cookies.clear()
        return SimpleNamespace(id=me["id"], username=username, email=me["email"], token=token, headers=headers)

    return _make


@pytest.fixture
def make_project(client):
    def _make(owner, title="Pixel Forest", is_public=True, **extra):
        resp = client.post(
            "/api/projects",
            json={"title": title, "isPublic": is_public, **extra},
            headers=owner.headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def make_asset(client):
    def _make(owner, title="Sprite Sheet", is_public=True, **extra):
        body = {
            "title": title,
            "fileUrl": "https://cdn.example.com/sprite.png",
            "fileType": "IMAGE",
            "isPublic": is_public,
            **extra,
        }
        resp = client.post("/api/assets", json=body, headers=owner.headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make
