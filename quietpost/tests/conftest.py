import os

# Must be set before quietpost.config is imported
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from typing import AsyncGenerator, Dict, Optional
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from quietpost.main import app
from quietpost.db.session import enable_sqlite_foreign_keys, get_db
from quietpost.models import Base, Post
from quietpost.repositories.comment_store import CommentStore
from quietpost.services.identity_service import create_access_token
from quietpost.services.redis_service import get_redis
from quietpost.utils.rate_limit import limiter

# Test database URL - in-memory SQLite
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

limiter.enabled = False

class FakeRedis:
    """Dict-backed stand-in for RedisService; expirations are recorded, not applied"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.expirations: Dict[str, Optional[int]] = {}

    async def set(self, key: str, value: str, expire: int = None):
        self.data[key] = value
        self.expirations[key] = expire

    async def get(self, key: str):
        return self.data.get(key)

    async def delete(self, key: str):
        self.data.pop(key, None)

    async def close(self):
        pass

@pytest.fixture
async def test_engine():
    """Fresh in-memory database for every test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()

@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    async with session_factory() as session:
        yield session

@pytest.fixture
def store(test_db) -> CommentStore:
    return CommentStore(test_db)

@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()

@pytest.fixture
async def test_client(session_factory, fake_redis) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client talking to the app with the test database and fake Redis"""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

@pytest.fixture
def make_post(test_db):
    """Factory creating a post directly in the database"""

    async def _make_post(user_id: str = "u1", content: str = "A quiet post about nothing much", **kwargs) -> Post:
        post = Post(
            user_id=user_id,
            content=content,
            word_count=len(content.split()),
            **kwargs
        )
        test_db.add(post)
        await test_db.commit()
        await test_db.refresh(post)
        return post

    return _make_post

@pytest.fixture
def auth_headers():
    def _auth_headers(user_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _auth_headers

@pytest.fixture
def anon_headers():
    def _anon_headers(anonymous_id: str) -> Dict[str, str]:
        return {"X-Anonymous-Id": anonymous_id}
    return _anon_headers
