"""Provider backed by the SQLAlchemy client and token tables."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from revocation.crypto.password import verify_secret
from revocation.db.engine import session_scope
from revocation.db.models_oauth import OAuthClientEntity
from revocation.db.repo_oauth import get_client
from revocation.oauth import token_service
from revocation.oauth.types import OAuthClientInformation, RevocationRequest


def _client_to_info(entity: OAuthClientEntity) -> OAuthClientInformation:
    """Convert an OAuthClientEntity to the client shape the endpoint uses."""
    return OAuthClientInformation(
        client_id=entity.id,
        client_secret=entity.client_secret_hash,
        client_id_issued_at=entity.client_id_issued_at,
        client_secret_expires_at=entity.client_secret_expires_at,
        client_name=entity.client_name,
        scope=entity.scope,
    )


class SqlClientsStore:
    """Clients store whose secrets are Argon2 hashes."""

    def __init__(self, factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = factory

    async def get_client(self, client_id: str) -> OAuthClientInformation | None:
        async with session_scope(self._factory) as session:
            entity = await get_client(session, client_id)
            return _client_to_info(entity) if entity else None

    def verify_client_secret(
        self, client: OAuthClientInformation, client_secret: str
    ) -> bool:
        if client.client_secret is None:
            return False
        return verify_secret(client_secret, client.client_secret)


class SqlOAuthProvider:
    """Revokes tokens in the token table, one transaction per request."""

    def __init__(self, factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = factory
        self._clients_store = SqlClientsStore(factory)

    @property
    def clients_store(self) -> SqlClientsStore:
        return self._clients_store

    async def revoke_token(
        self, client: OAuthClientInformation, request: RevocationRequest
    ) -> None:
        async with session_scope(self._factory) as session:
            await token_service.revoke_token(
                session,
                client_id=client.client_id,
                token=request.token,
                token_type_hint=request.token_type_hint,
            )
