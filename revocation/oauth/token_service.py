"""Token revocation against the token store."""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from revocation.db.models_oauth import OAuthTokenEntity
from revocation.db.repo_oauth import find_token_by_hash, hash_token
from revocation.oauth.types import TokenTypeHint

logger = logging.getLogger(__name__)


async def find_token(
    session: AsyncSession,
    token: str,
    token_type_hint: TokenTypeHint | None = None,
) -> OAuthTokenEntity | None:
    """Find the record holding *token*, trying the hinted kind first.

    The hint only orders the lookups; a wrong hint still finds the token.
    """
    token_hash = hash_token(token)
    order = [False, True]
    if token_type_hint == "refresh_token":
        order.reverse()
    for refresh in order:
        entity = await find_token_by_hash(session, token_hash, refresh=refresh)
        if entity is not None:
            return entity
    return None


async def revoke_token(
    session: AsyncSession,
    *,
    client_id: str,
    token: str,
    token_type_hint: TokenTypeHint | None = None,
) -> bool:
    """Revoke *token* if it was issued to *client_id*.

    Returns True when a record changed. Unknown, already revoked and foreign
    tokens leave the store untouched.
    """
    entity = await find_token(session, token, token_type_hint)
    if entity is None or entity.revoked:
        return False
    if entity.client_id != client_id:
        logger.warning(
            "Client %s tried to revoke a token issued to another client", client_id
        )
        return False

    entity.revoked = True
    entity.revoked_at = datetime.now(UTC)
    await session.flush()
    logger.info("Revoked token %s for client %s", entity.id, client_id)
    return True
