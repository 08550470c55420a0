"""Shared test fixtures for the revocation service."""

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from revocation.core.app import create_app
from revocation.db.base import BaseEntity
from revocation.oauth.provider import InMemoryClientsStore
from revocation.oauth.types import OAuthClientInformation, RevocationRequest

CLIENT_ID = "client-1"
CLIENT_SECRET = "secret-1"
PUBLIC_CLIENT_ID = "public-1"
EXPIRED_CLIENT_ID = "expired-1"


class FakeProvider:
    """Provider double recording revocations and optionally failing."""

    def __init__(self, clients_store: InMemoryClientsStore) -> None:
        self.clients_store = clients_store
        self.calls: list[tuple[OAuthClientInformation, RevocationRequest]] = []
        self.error: Exception | None = None

    async def revoke_token(
        self, client: OAuthClientInformation, request: RevocationRequest
    ) -> None:
        self.calls.append((client, request))
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("REVOKE_LOG_LEVEL", "DEBUG")


@pytest.fixture
def clients_store() -> InMemoryClientsStore:
    """Store with a confidential, a public and an expired client."""
    return InMemoryClientsStore(
        [
            OAuthClientInformation(client_id=CLIENT_ID, client_secret=CLIENT_SECRET),
            OAuthClientInformation(client_id=PUBLIC_CLIENT_ID),
            OAuthClientInformation(
                client_id=EXPIRED_CLIENT_ID,
                client_secret=CLIENT_SECRET,
                client_secret_expires_at=1,
            ),
        ]
    )


@pytest.fixture
def provider(clients_store: InMemoryClientsStore) -> FakeProvider:
    return FakeProvider(clients_store)


@pytest.fixture
async def client(provider: FakeProvider) -> AsyncIterator[AsyncClient]:
    """httpx client against an app with rate limiting disabled."""
    app = create_app(provider=provider, rate_limit=False)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Session factory over one shared in-memory SQLite connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://", echo=False, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(BaseEntity.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def db_session(
    db_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Create an in-memory SQLite async session for tests."""
    async with db_factory() as session:
        yield session
