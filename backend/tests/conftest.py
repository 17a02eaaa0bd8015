"""
Centralized Test Configuration.
"""

import os

# Settings are read at import time; configure the test environment first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("CACHE_INVALIDATION_STRATEGY", "flush")
os.environ.setdefault("EMAIL_DNS_CHECK", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.config import settings
from backend.app.core.jwt import create_access_token
from backend.app.core.redis_client import get_redis
from backend.app.core.security import get_password_hash
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.services.cache import cache_store, get_cache_store
from backend.app.services.email_client import get_mailer
from backend.app.services.storage import ImageStorage, get_image_storage

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "password123"


def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.expirations = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        if self._closed:
            raise ConnectionError("Redis is down")
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            raise ConnectionError("Redis is down")
        self.store[key] = value
        return True

    async def incr(self, key):
        if self._closed:
            raise ConnectionError("Redis is down")
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    async def expire(self, key, seconds):
        if self._closed:
            raise ConnectionError("Redis is down")
        self.expirations[key] = seconds
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def flushdb(self):
        self.store = {}
        self.expirations = {}

    async def aclose(self):
        self._closed = True


class FakeMailer:
    """Records messages instead of talking to an SMTP relay."""

    def __init__(self, configured=True, fail=False):
        self.configured = configured
        self.fail = fail
        self.sent = []

    @property
    def is_configured(self):
        return self.configured

    def send_email(self, to_email, subject, body, html_body=None):
        if self.fail:
            raise ConnectionError("SMTP relay unreachable")
        self.sent.append({"to": to_email, "subject": subject, "body": body})
        return True

    def subjects(self):
        return [message["subject"] for message in self.sent]


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def storage(tmp_path):
    return ImageStorage(tmp_path / "public")


@pytest.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", set_sqlite_pragma)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(autouse=True)
async def apply_overrides(session_factory, mock_redis, mailer, storage):
    """Point every app dependency at the per-test doubles."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_image_storage] = lambda: storage
    app.dependency_overrides[get_cache_store] = lambda: cache_store
    await cache_store.flush()

    yield

    app.dependency_overrides = {}
    await cache_store.flush()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


async def _create_user(session, role, email, name="Test User", password=TEST_PASSWORD):
    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def _token_for(user):
    return create_access_token(data={"sub": user.email, "user_id": user.id, "role": user.role.value})


@pytest.fixture
def user_factory(db_session):
    """Create a user row: ``await user_factory(UserRole.STAFF, "someone@mhrhci.ph")``."""
    async def factory(role, email, name="Test User", password=TEST_PASSWORD):
        return await _create_user(db_session, role, email, name, password)
    return factory


@pytest.fixture
def headers_for():
    """Bearer headers for the admin API."""
    return lambda user: {"Authorization": f"Bearer {_token_for(user)}"}


@pytest.fixture
def cookie_for():
    """Session cookie header for the dashboard."""
    return lambda user: {"Cookie": f"{settings.session_cookie_name}={_token_for(user)}"}


@pytest.fixture
async def system_admin(user_factory):
    return await user_factory(UserRole.SYSTEM_ADMIN, "root@mhrhci.ph", "System Admin")


@pytest.fixture
async def admin(user_factory):
    return await user_factory(UserRole.ADMIN, "admin@mhrhci.ph", "Admin User")


@pytest.fixture
async def staff(user_factory):
    return await user_factory(UserRole.STAFF, "staff@mhrhci.ph", "Staff User")


@pytest.fixture
def system_admin_headers(system_admin, headers_for):
    return headers_for(system_admin)


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)


@pytest.fixture
def staff_headers(staff, headers_for):
    return headers_for(staff)
