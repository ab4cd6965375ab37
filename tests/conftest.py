"""Test configuration and fixtures.

Each test runs against its own in-memory SQLite database:
1. A fresh engine and schema are created per test
2. The FastAPI session dependency is overridden with the test session
3. Route handlers commit normally; the database disappears with the engine
"""

from collections.abc import AsyncGenerator
from pathlib import Path

from dotenv import load_dotenv

# Settings are read at import time, so the test environment must be loaded first
test_env_path = Path(__file__).parent.parent / ".env.test"
load_dotenv(test_env_path, override=True)

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from streamify.config.settings import settings  # noqa: E402
from streamify.database.base import Base, utcnow  # noqa: E402
from streamify.database.client import create_engine  # noqa: E402
from streamify.database.credential_store import CredentialStore  # noqa: E402
from streamify.database.dependencies import get_db_session  # noqa: E402
from streamify.features.auth.passwords import PasswordHasher  # noqa: E402
from streamify.features.auth.service import AuthService  # noqa: E402
from streamify.features.auth.sessions import SessionManager  # noqa: E402
from streamify.features.auth.tokens import TokenMinter  # noqa: E402
from streamify.features.user.models import User, UserRole  # noqa: E402
from streamify.main import app  # noqa: E402

DEFAULT_PASSWORD = "TestPass123"


# Database Setup - Function Scope (Fresh Database Per Test)


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory SQLite engine with the full schema.

    StaticPool keeps a single connection so every session sees the same database.
    """
    engine = create_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create the database session shared by the test and the app."""
    async_session = AsyncSession(bind=db_engine, expire_on_commit=False)
    try:
        yield async_session
    finally:
        await async_session.close()


# FastAPI Client & Dependency Overrides


@pytest_asyncio.fixture(autouse=True)
async def override_get_db_session(session: AsyncSession):
    """Override the database session dependency with the test session."""

    async def _get_test_session():
        yield session

    app.dependency_overrides[get_db_session] = _get_test_session
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient]:
    """Create an async HTTP test client.

    The client keeps cookies between requests, so the refresh cookie set by
    login is sent back automatically on refresh and logout.
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Core Components


@pytest_asyncio.fixture
async def store(session: AsyncSession) -> CredentialStore:
    return CredentialStore(session)


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher()


@pytest.fixture
def minter() -> TokenMinter:
    return TokenMinter(secret=settings.secret_key, algorithm=settings.jwt_algorithm)


@pytest_asyncio.fixture
async def sessions(store: CredentialStore) -> SessionManager:
    return SessionManager(store)


@pytest_asyncio.fixture
async def auth_service(
    store: CredentialStore,
    hasher: PasswordHasher,
    minter: TokenMinter,
    sessions: SessionManager,
) -> AuthService:
    return AuthService(store, hasher, minter, sessions)


# Test User Factories


@pytest_asyncio.fixture
async def make_user(store: CredentialStore, hasher: PasswordHasher):
    """Factory fixture to create test users with custom fields.

    Users are verified and unlocked unless stated otherwise.

    Usage:
        user = await make_user()                                # defaults
        admin = await make_user(role=UserRole.ADMIN)            # admin
        pending = await make_user(is_verified=False)            # unverified
        locked = await make_user(is_locked=True)                # locked
    """
    counter = 0  # Counter for unique email/username generation

    async def _factory(
        email=None,
        username=None,
        password=DEFAULT_PASSWORD,
        role=UserRole.USER,
        is_verified=True,
        is_locked=False,
        **kwargs,
    ) -> User:
        nonlocal counter
        counter += 1

        # Generate unique email and username if not provided
        if email is None:
            email = f"testuser{counter}@example.com"
        if username is None:
            username = f"testuser{counter}"

        user = await store.create_user(
            email=email,
            username=username,
            password_hash=hasher.hash(password),
            role=role,
            is_verified=is_verified,
            is_locked=is_locked,
            **kwargs,
        )
        await store.session.commit()
        return user

    yield _factory


@pytest_asyncio.fixture
async def make_session(sessions: SessionManager, store: CredentialStore):
    """Factory fixture to open a session directly, optionally already expired."""

    async def _factory(user: User, expired: bool = False):
        user_session, refresh_token = await sessions.issue(user.id, "127.0.0.1", "pytest")
        if expired:
            user_session.expires_at = utcnow() - sessions.refresh_ttl
            await store.session.flush()
        await store.session.commit()
        return user_session, refresh_token

    return _factory


@pytest_asyncio.fixture
async def login_user(client: AsyncClient):
    """Log a user in through the API.

    Returns the bearer headers; the refresh cookie stays in the client jar.
    """

    async def _login(user: User, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
        response = await client.post(
            f"{settings.api_prefix}/auth/login",
            json={"email": user.email, "password": password},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest_asyncio.fixture
async def auth_client(client: AsyncClient, make_user, login_user):
    """Authenticated client with a regular user.

    Returns:
        tuple: (client, user, headers)

    """
    user = await make_user()
    headers = await login_user(user)
    yield client, user, headers


@pytest_asyncio.fixture
async def admin_client(client: AsyncClient, make_user, login_user):
    """Authenticated client with an admin user.

    Returns:
        tuple: (client, user, headers)

    """
    user = await make_user(role=UserRole.ADMIN)
    headers = await login_user(user)
    yield client, user, headers
