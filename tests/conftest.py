"""Shared test fixtures."""

from __future__ import annotations

import os

# Settings are read when the app module is imported, so the test environment goes first
os.environ["VIDTUBE_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["VIDTUBE_JWT_ACCESS_SECRET"] = "test-access-secret-0123456789abcdef0123"
os.environ["VIDTUBE_JWT_REFRESH_SECRET"] = "test-refresh-secret-0123456789abcdef012"
os.environ["VIDTUBE_MEDIA_PROVIDER"] = "memory"
os.environ["VIDTUBE_COOKIE_SECURE"] = "false"
os.environ["VIDTUBE_LOG_FORMAT"] = "console"
os.environ["VIDTUBE_LOG_LEVEL"] = "WARNING"

from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from vidtube.auth.jwt import TokenConfig, TokenService  # noqa: E402
from vidtube.config import get_settings  # noqa: E402
from vidtube.database import close_db, get_engine, get_session, init_db  # noqa: E402
from vidtube.db import models  # noqa: E402, F401
from vidtube.db.base import Base  # noqa: E402
from vidtube.main import create_app  # noqa: E402
from vidtube.media.storage import MemoryObjectStore, get_object_store, reset_object_store  # noqa: E402

from tests.seed import PASSWORD  # noqa: E402


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over a fresh in-memory database."""
    get_settings.cache_clear()
    reset_object_store()
    app = create_app()
    settings = get_settings()
    await init_db(settings.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()
    reset_object_store()


@pytest_asyncio.fixture
async def db_session(client: AsyncClient) -> AsyncGenerator[AsyncSession, None]:
    """Direct session on the client's database. Commit seeds before calling the API."""
    async for session in get_session():
        yield session
        break


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TokenConfig.from_settings(get_settings()))


@pytest.fixture
def media_store(client: AsyncClient) -> MemoryObjectStore:
    """The in-memory object store the app uploads into."""
    store = get_object_store()
    assert isinstance(store, MemoryObjectStore)
    return store


async def _register(client: AsyncClient, username: str, *, with_cover: bool = False) -> dict[str, Any]:
    files: dict[str, Any] = {"avatar": ("avatar.png", b"\x89PNG-avatar-" + username.encode(), "image/png")}
    if with_cover:
        files["coverImage"] = ("cover.png", b"\x89PNG-cover-" + username.encode(), "image/png")
    response = await client.post(
        "/api/v1/users/register",
        data={
            "username": username,
            "email": f"{username}@example.com",
            "fullName": f"{username.capitalize()} Tester",
            "password": PASSWORD,
        },
        files=files,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _login(client: AsyncClient, username: str) -> dict[str, Any]:
    response = await client.post("/api/v1/users/login", json={"username": username, "password": PASSWORD})
    assert response.status_code == 200, response.text
    # Keep the shared client anonymous; tests pass tokens explicitly
    client.cookies.clear()
    return response.json()["data"]


@pytest.fixture
def register_user(client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    async def _factory(username: str, *, with_cover: bool = False) -> dict[str, Any]:
        return await _register(client, username, with_cover=with_cover)

    return _factory


@pytest.fixture
def signed_in(client: AsyncClient) -> Callable[[str], Awaitable[dict[str, Any]]]:
    """Register and log a user in. Returns the user plus tokens and auth headers."""

    async def _factory(username: str) -> dict[str, Any]:
        user = await _register(client, username)
        tokens = await _login(client, username)
        return {
            "user": user,
            "id": user["id"],
            "access_token": tokens["accessToken"],
            "refresh_token": tokens["refreshToken"],
            "headers": {"Authorization": f"Bearer {tokens['accessToken']}"},
        }

    return _factory


@pytest.fixture
def upload_video(client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Upload a video for a signed-in user; optionally publish it."""

    async def _factory(
        owner: dict[str, Any],
        title: str = "My video",
        description: str = "A description",
        *,
        publish: bool = True,
    ) -> dict[str, Any]:
        response = await client.post(
            "/api/v1/videos",
            data={"title": title, "description": description},
            files={
                "videoFile": ("clip.mp4", b"fake-mp4-bytes", "video/mp4"),
                "thumbnail": ("thumb.png", b"fake-png-bytes", "image/png"),
            },
            headers=owner["headers"],
        )
        assert response.status_code == 201, response.text
        video = response.json()["data"]
        if publish:
            toggled = await client.patch(f"/api/v1/videos/toggle/publish/{video['id']}", headers=owner["headers"])
            assert toggled.status_code == 200, toggled.text
            video = toggled.json()["data"]
        return video

    return _factory
