"""Repository for OAuth client and token records."""

import hashlib
import secrets
import time
from datetime import UTC, datetime, timedelta

import uuid_utils
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revocation.crypto.password import hash_secret
from revocation.db.models_oauth import OAuthClientEntity, OAuthTokenEntity

ACCESS_TOKEN_TTL_DEFAULT = 3600
REFRESH_TOKEN_TTL_DEFAULT = 2_592_000


class ClientRegistration(BaseModel):
    """A freshly registered client; the plaintext secret is shown once."""

    client_id: str
    client_secret: str | None
    client_name: str


class TokenRecordParams(BaseModel):
    """Raw token pair to persist for a client."""

    client_id: str
    access_token: str
    refresh_token: str | None = None
    scope: str = ""
    access_ttl: int = ACCESS_TOKEN_TTL_DEFAULT
    refresh_ttl: int = REFRESH_TOKEN_TTL_DEFAULT


def hash_token(token: str) -> str:
    """SHA-256 hash a token for database storage."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_client_secret() -> str:
    """Generate a cryptographically random client secret."""
    return secrets.token_urlsafe(32)


async def get_client(session: AsyncSession, client_id: str) -> OAuthClientEntity | None:
    """Look up an active OAuth client by ID."""
    stmt = select(OAuthClientEntity).where(
        OAuthClientEntity.id == client_id,
        OAuthClientEntity.is_active.is_(True),
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def register_client(
    session: AsyncSession,
    client_name: str,
    *,
    confidential: bool = True,
    scope: str | None = None,
    secret_ttl: int | None = None,
) -> ClientRegistration:
    """Create a client; public clients get no secret."""
    issued_at = int(time.time())
    secret = generate_client_secret() if confidential else None
    entity = OAuthClientEntity(
        id=str(uuid_utils.uuid7()),
        client_secret_hash=hash_secret(secret) if secret else None,
        client_name=client_name,
        scope=scope,
        client_id_issued_at=issued_at,
        client_secret_expires_at=issued_at + secret_ttl if secret_ttl else 0,
        is_active=True,
    )
    session.add(entity)
    await session.flush()
    return ClientRegistration(
        client_id=entity.id, client_secret=secret, client_name=client_name
    )


async def store_token(
    session: AsyncSession, params: TokenRecordParams
) -> OAuthTokenEntity:
    """Persist the hashes of an issued token pair."""
    now = datetime.now(UTC)
    entity = OAuthTokenEntity(
        id=str(uuid_utils.uuid7()),
        client_id=params.client_id,
        access_token_hash=hash_token(params.access_token),
        refresh_token_hash=(
            hash_token(params.refresh_token) if params.refresh_token else None
        ),
        scope=params.scope,
        expires_at=now + timedelta(seconds=params.access_ttl),
        refresh_expires_at=(
            now + timedelta(seconds=params.refresh_ttl)
            if params.refresh_token
            else None
        ),
        revoked=False,
    )
    session.add(entity)
    await session.flush()
    return entity


async def find_token_by_hash(
    session: AsyncSession, token_hash: str, *, refresh: bool
) -> OAuthTokenEntity | None:
    """Look up a token record by its access or refresh hash."""
    column = (
        OAuthTokenEntity.refresh_token_hash
        if refresh
        else OAuthTokenEntity.access_token_hash
    )
    stmt = select(OAuthTokenEntity).where(column == token_hash)
    result = await session.execute(stmt)
    return result.scalars().first()
