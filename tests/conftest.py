"""Pytest configuration and fixtures for backend tests.

Every test gets its own SQLite database file under pytest's tmp_path, so
no external services are needed.
"""

import os
import shutil
import tempfile
from collections.abc import AsyncGenerator
from datetime import timedelta
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# Set test environment variables before importing app modules
_TEST_DIR = tempfile.mkdtemp(prefix="chat_aggregator_tests_")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["JWT_SECRET"] = "test-access-secret-" + "a" * 32
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-" + "b" * 32
# Metrics are instrumented once, by the test that needs them
os.environ["ENABLE_METRICS"] = "false"
# Cheap Argon2 parameters keep the suite fast
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "8"
os.environ["ARGON2_PARALLELISM"] = "1"

from chat_aggregator.core.database import Base, build_engine  # noqa: E402
from chat_aggregator.services.auth import AuthService  # noqa: E402
from chat_aggregator.services.passwords import PasswordHasher  # noqa: E402
from chat_aggregator.services.sessions import SessionManager  # noqa: E402
from chat_aggregator.services.store import CredentialStore  # noqa: E402
from chat_aggregator.services.tokens import JWTService  # noqa: E402

TEST_ACCESS_SECRET = os.environ["JWT_SECRET"]
TEST_REFRESH_SECRET = os.environ["JWT_REFRESH_SECRET"]

TEST_USERNAME = "alice"
TEST_EMAIL = "alice@example.com"
TEST_PASSWORD = "wonderland42"


# --- Database Fixtures ---


@pytest.fixture(scope="session", autouse=True)
def _cleanup_test_dir():
    """Remove the scratch directory behind DATABASE_URL after the run."""
    yield
    shutil.rmtree(_TEST_DIR, ignore_errors=True)


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database engine for one test."""
    import chat_aggregator.models  # noqa: F401

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# --- Service Fixtures ---


@pytest.fixture
def store(db_session: AsyncSession) -> CredentialStore:
    return CredentialStore(db_session)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Argon2id hasher with minimal cost parameters."""
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def session_manager(store: CredentialStore) -> SessionManager:
    return SessionManager(store, ttl=timedelta(hours=24))


@pytest.fixture
def jwt_service(store: CredentialStore) -> JWTService:
    return JWTService(
        store,
        access_secret=TEST_ACCESS_SECRET,
        refresh_secret=TEST_REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    )


@pytest.fixture
def auth_service(
    store: CredentialStore,
    session_manager: SessionManager,
    jwt_service: JWTService,
    hasher: PasswordHasher,
) -> AuthService:
    return AuthService(store, session_manager, jwt_service, hasher)


# --- Factory Fixtures ---


@pytest.fixture
def user_factory(store: CredentialStore, hasher: PasswordHasher):
    """Factory for creating users directly in the store."""
    counter = 0

    async def _create_user(
        username: str | None = None,
        email: str | None = None,
        password: str = TEST_PASSWORD,
        **profile: Any,
    ):
        nonlocal counter
        counter += 1
        username = username or f"user{counter}"
        email = email or f"{username}@example.com"
        user = await store.create_user(username, email, await hasher.hash(password))
        if profile:
            user = await store.update_user_profile(user.id, **profile)
        return user

    return _create_user


# --- HTTP Client Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database override."""
    from chat_aggregator.core.database import get_db
    from chat_aggregator.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def registered_user(async_client: AsyncClient) -> dict[str, Any]:
    """Register alice through the web API and return the public user record."""
    response = await async_client.post(
        "/api/register",
        json={"username": TEST_USERNAME, "email": TEST_EMAIL, "password": TEST_PASSWORD},
    )
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def mobile_tokens(async_client: AsyncClient, registered_user) -> dict[str, Any]:
    """Log alice in through the mobile API and return the token response."""
    response = await async_client.post(
        "/api/mobile/login",
        json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    return response.json()
