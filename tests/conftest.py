"""
Shared test fixtures for Newsletter API tests.

Provides database session management, a recording email provider, test
clients, and admin/collaborator fixtures.
"""

import json
import os
import re
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from newsletter.auth.jwt import ACCESS_TOKEN_COOKIE, create_access_token
from newsletter.auth.password import hash_password
from newsletter.config import settings
from newsletter.database import Base, get_db
from newsletter.dependencies import get_email_client, get_renderer
from newsletter.domain import Email
from newsletter.email_client import EmailClient
from newsletter.main import app
from newsletter.middleware.rate_limit import reset_limiter
from newsletter.models import User, UserRole
from newsletter.rendering import TemplateRenderer

# Test database URL (uses separate test database)
TEST_DATABASE_URL = settings.test_database_url

# Set NEWSLETTER_SKIP_DB_TESTS=1 to skip, rather than fail, database tests without Postgres
SKIP_DB_TESTS_WHEN_UNAVAILABLE = os.environ.get("NEWSLETTER_SKIP_DB_TESTS") == "1"

# Create test engine with NullPool to avoid connection issues
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,
    echo=False,
    connect_args={"timeout": 5},
)

TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

LINK_PATTERN = re.compile(r"https?://[^\s\"'<>]+")


# --- Email Provider Double ---


@dataclass
class MockEmailServer:
    """Records every request sent to the email provider and answers with ``status_code``."""

    status_code: int = 200
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def links(self, index: int = -1) -> list[str]:
        """Links found in the plain-text body of the ``index``-th email."""
        return LINK_PATTERN.findall(self.payloads()[index]["TextBody"])


# --- Rate Limiter Reset Fixture ---


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Reset rate limiter before each test to ensure test isolation."""
    reset_limiter()
    yield


# --- Email Fixtures ---


@pytest.fixture
def email_server() -> MockEmailServer:
    return MockEmailServer()


@pytest_asyncio.fixture
async def email_client(email_server: MockEmailServer) -> AsyncGenerator[EmailClient, None]:
    client = EmailClient(
        base_url="http://email.test",
        sender=Email.parse("newsletter@example.com"),
        authorization_token=SecretStr("test-token"),
        timeout=settings.email_timeout_seconds,
        transport=email_server.transport,
    )
    yield client
    await client.aclose()


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create tables before each test function, drop after.
    Provides isolated database state per test.
    """
    try:
        async with test_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, DBAPIError) as exc:
        if not SKIP_DB_TESTS_WHEN_UNAVAILABLE:
            raise
        pytest.skip(f"Test database unavailable: {exc}")

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession,
    email_client: EmailClient,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client configured for testing.

    Every request gets its own session on the test database, so concurrent
    requests behave like they would against the real engine.
    """

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    renderer = TemplateRenderer()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_client] = lambda: email_client
    app.dependency_overrides[get_renderer] = lambda: renderer

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=False,
    ) as client:
        yield client

    app.dependency_overrides.clear()


# --- Authentication Helper Fixtures ---


@pytest.fixture
def session_headers():
    """Factory fixture for a Cookie header carrying the user's session token."""

    def _session_headers(user: dict[str, Any]) -> dict[str, str]:
        token = create_access_token(user["user_id"], user["role"])
        return {"Cookie": f"{ACCESS_TOKEN_COOKIE}={token}"}

    return _session_headers


# --- User Fixtures ---


async def _create_user(
    db_session: AsyncSession,
    username: str,
    password: str,
    role: UserRole,
) -> dict[str, Any]:
    """Helper to create a user in the database."""
    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
    )
    db_session.add(user)
    await db_session.commit()

    return {
        "user_id": str(user.id),
        "username": user.username,
        "password": password,
        "role": role.value,
    }


@pytest_asyncio.fixture
async def test_admin(db_session: AsyncSession) -> dict[str, Any]:
    return await _create_user(
        db_session,
        username="adminuser",
        password="AdminPassword123!",
        role=UserRole.ADMIN,
    )


@pytest_asyncio.fixture
async def test_collaborator(db_session: AsyncSession) -> dict[str, Any]:
    return await _create_user(
        db_session,
        username="collaborator",
        password="CollabPassword123!",
        role=UserRole.COLLABORATOR,
    )


# --- Subscriber Fixtures ---


@pytest.fixture
def create_unconfirmed_subscriber(async_client: AsyncClient, email_server: MockEmailServer):
    """
    Factory fixture subscribing through the API.

    Returns the confirmation link that was emailed to the subscriber.
    """

    async def _create(name: str = "le guin", email: str = "ursula_le_guin@gmail.com") -> str:
        response = await async_client.post(
            "/subscriptions",
            data={"name": name, "email": email},
        )
        assert response.status_code == 200
        return email_server.links()[0]

    return _create


@pytest.fixture
def create_confirmed_subscriber(async_client: AsyncClient, create_unconfirmed_subscriber):
    async def _create(name: str = "le guin", email: str = "ursula_le_guin@gmail.com") -> None:
        link = await create_unconfirmed_subscriber(name, email)
        response = await async_client.get(httpx.URL(link).raw_path.decode())
        assert response.status_code == 200

    return _create


# --- Utility Fixtures ---


@pytest.fixture
def idempotency_key():
    """Generate a unique idempotency key for testing."""
    import secrets

    def _idempotency_key(prefix: str = "test") -> str:
        return f"{prefix}-{secrets.token_hex(16)}"

    return _idempotency_key


@pytest.fixture
def newsletter_form(idempotency_key) -> dict[str, str]:
    return {
        "title": "Newsletter title",
        "html_content": "<p>Newsletter body as HTML</p>",
        "text_content": "Newsletter body as plain text",
        "idempotency_key": idempotency_key(),
    }
