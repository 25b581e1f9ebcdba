"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from ambureview.app.main import app
from ambureview.app.db.session import get_db, Base
from ambureview.app.core.redis_client import get_redis
import ambureview.app.core.redis_client as redis_client_module
from ambureview.app.core.jwt import create_access_token, build_token_payload
from ambureview.app.core.security import get_password_hash
from ambureview.app.models.ambulance import Ambulance
from ambureview.app.models.enums import UserRole
from ambureview.app.models.user import User
from ambureview.app.services.config_store import config_store
from ambureview.app.services.job_runner import JobRunner, get_job_runner

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


@event.listens_for(engine.sync_engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        return await self.set(key, value, ex=ttl)

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session")
def test_job_runner():
    return JobRunner(session_factory=TestingSessionLocal)


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session, test_job_runner):
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """

    # Patch the global redis client used by token revocation
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_job_runner] = lambda: test_job_runner
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()
    config_store.invalidate()

    yield

    config_store.invalidate()
    async with engine.begin() as conn:
        # users <-> ambulances reference each other; drop without FK checks
        await conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    return TestingSessionLocal


# --- Domain fixtures ---

@pytest.fixture
def make_user(db_session):
    """Factory: insert a user directly and return it."""
    async def _make_user(username: str, role: UserRole = UserRole.USER, password: str = "secret123",
                         assigned_ambulance_id=None, is_active: bool = True) -> User:
        user = User(
            email=f"{username}@ambureview.es",
            username=username,
            full_name=username.title(),
            hashed_password=get_password_hash(password),
            role=role,
            assigned_ambulance_id=assigned_ambulance_id,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make_user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(build_token_payload(user))}"}


@pytest.fixture
def headers_for():
    """Bearer headers for an arbitrary user created inside a test."""
    return auth_headers


@pytest.fixture
async def admin(make_user):
    return await make_user("admin", UserRole.ADMIN)


@pytest.fixture
async def coordinator(make_user):
    return await make_user("coordinator", UserRole.COORDINATOR)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def coordinator_headers(coordinator):
    return auth_headers(coordinator)


@pytest.fixture
async def ambulance(db_session):
    amb = Ambulance(code="AMB-01", plate="1234-ABC", name="Alfa 1", model="Mercedes Sprinter")
    db_session.add(amb)
    await db_session.commit()
    await db_session.refresh(amb)
    return amb


@pytest.fixture
async def crew(make_user, ambulance):
    """Crew user assigned to the `ambulance` fixture."""
    return await make_user("crew", UserRole.USER, assigned_ambulance_id=ambulance.id)


@pytest.fixture
def crew_headers(crew):
    return auth_headers(crew)
