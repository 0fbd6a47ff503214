"""
LevelUp Learning - Test Configuration
Pytest fixtures and configuration for testing
"""
import os

# Must be set before levelup.core.config is imported
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TELEMETRY_ENABLED", "false")

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import levelup.models  # noqa: F401
from levelup.ai.core.llm import LLMClient, get_llm_client
from levelup.core.database import Base, get_db
from levelup.core.security import create_access_token
from levelup.main import app

from factories import create_curriculum, create_user, fake_llm


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Fresh SQLite database file per test."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def llm_responses() -> list[str]:
    """Responses the content generator will return, in call order, per request."""
    return []


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, llm_responses: list[str]) -> AsyncGenerator[AsyncClient, None]:
    """Test client sharing the test session and a scripted content generator."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    def override_get_llm_client() -> LLMClient:
        return fake_llm(list(llm_responses) or ["{}"])

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = override_get_llm_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user(db_session):
    return await create_user(db_session)


@pytest.fixture
def auth_headers(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest_asyncio.fixture
async def curriculum(db_session):
    """Math with three levels and two subtopics per level."""
    return await create_curriculum(db_session)
