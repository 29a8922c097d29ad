import os
import time
from typing import Any, AsyncGenerator, Callable, Dict, List
from unittest.mock import patch

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Set test database URL before importing app
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

JWT_SECRET = "unit-test-jwt-secret-with-enough-bytes"
CRON_SECRET = "unit-test-cron-secret"


class FakeCompletion:
    """Completion service returning queued texts."""

    def __init__(self) -> None:
        self.responses: List[str] = []
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, messages, **kwargs):
        from founderos_ai.agent_core.completion import Completion

        self.calls.append({"messages": list(messages), **kwargs})
        if not self.responses:
            raise RuntimeError("no scripted completion left")
        return Completion(text=self.responses.pop(0), tokens_used=100, model=kwargs.get("model"))


@pytest.fixture(autouse=True)
def auth_settings(monkeypatch: pytest.MonkeyPatch):
    """Configure the bearer secrets the auth dependencies check against."""
    from founderos_ai.server.core.config import settings

    monkeypatch.setattr(settings, "auth_jwt_secret", JWT_SECRET)
    monkeypatch.setattr(settings, "cron_secret", CRON_SECRET)
    return settings


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(user_id: str = "alice", *, secret: str = JWT_SECRET, expires_in: int = 3600, **claims: Any) -> str:
        payload = {"sub": user_id, "aud": "authenticated", "exp": int(time.time()) + expires_in, **claims}
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token) -> Callable[[str], Dict[str, str]]:
    def _headers(user_id: str = "alice") -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database per test."""
    from founderos_ai.agent_core.repos.sql import create_all

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def repos(test_engine):
    from founderos_ai.agent_core.repos.sql import build_sql_repos, create_sessionmaker

    return build_sql_repos(session_factory=create_sessionmaker(test_engine))


@pytest.fixture
def agent_service(repos, completion):
    from founderos_ai.server.services.agent_service import AgentService

    return AgentService(repos=repos, completion=completion)


@pytest_asyncio.fixture(name="client")
async def client_fixture(agent_service) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from founderos_ai.server.main import app
    from founderos_ai.server.services.agent_service import get_agent_service

    app.dependency_overrides[get_agent_service] = lambda: agent_service

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("founderos_ai.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()
