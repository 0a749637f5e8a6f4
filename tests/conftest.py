"""
Pytest fixtures for KMS tests.

The application runs in-process against a file-based SQLite database so
every connection (app and fixtures) sees the same data.
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Use file-based SQLite so all connections share the same DB (in-memory is per-connection)
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
# Force config reload so the app uses the test DB
from kms.config import get_settings

get_settings.cache_clear()

from kms.database import engine
from kms.engines.config import ConfigurationService
from kms.kernel.models import Base
from kms.main import app

API = get_settings().api_v1_prefix
PASSWORD = "Password123"


def unique_text(words: int = 12) -> str:
    """Description made of random words, so uploads never look like duplicates."""
    return " ".join(uuid.uuid4().hex for _ in range(words))


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async client on a fresh schema with default configuration."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    app.state.config_service = ConfigurationService()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def register(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """
    Register a user and return their tokens.

    Usage:
        champion = await register("Knowledge Champion")
        await client.get(url, headers=champion["headers"])
    """

    async def _register(role: str = "Consultant", **overrides) -> dict:
        suffix = uuid.uuid4().hex[:10]
        payload = {
            "username": f"user_{suffix}",
            "email": f"user_{suffix}@acme-consulting.com",
            "password": PASSWORD,
            "role": role,
            "region": "EMEA",
            "skills": [],
        }
        payload.update(overrides)
        response = await client.post(f"{API}/auth/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "headers": auth_headers(body["access_token"]),
            "user": body["user"],
            "id": body["user"]["id"],
            "refresh_token": body["refresh_token"],
            "email": payload["email"],
            "password": payload["password"],
        }

    return _register


@pytest.fixture
def upload(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """Upload a knowledge item as the given user; returns the created item."""

    async def _upload(
        headers: Dict[str, str],
        title: Optional[str] = None,
        description: Optional[str] = None,
        category: str = "Strategy",
        tags: Optional[list] = None,
        **extra,
    ) -> dict:
        payload = {
            "title": title or f"Playbook {uuid.uuid4().hex[:8]}",
            "description": description or unique_text(),
            "category": category,
            "tags": ["pricing"] if tags is None else tags,
            **extra,
        }
        response = await client.post(f"{API}/knowledge", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _upload
