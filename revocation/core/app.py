"""FastAPI application factory for the token revocation service."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from revocation.core.settings import RateLimitSettings, RevocationSettings
from revocation.db.engine import get_session_factory
from revocation.oauth.provider import OAuthServerProvider
from revocation.oauth.rate_limit import RateLimitConfig
from revocation.oauth.routes_revoke import mount_revocation_endpoint
from revocation.oauth.sql_provider import SqlOAuthProvider


def create_app(
    provider: OAuthServerProvider | None = None,
    rate_limit: RateLimitConfig = None,
) -> FastAPI:
    """Build the application.

    Without a *provider* the SQL-backed one is used; without *rate_limit*
    the `REVOKE_RATE_LIMIT_*` settings apply.
    """
    settings = RevocationSettings()
    logging.getLogger("revocation").setLevel(settings.log_level.upper())

    factory = get_session_factory() if provider is None else None

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        if factory is not None:
            await factory.kw["bind"].dispose()

    app = FastAPI(
        title="OAuth Token Revocation",
        version="0.1.0",
        lifespan=lifespan,
    )

    if factory is not None:
        provider = SqlOAuthProvider(factory)
    if rate_limit is None:
        rate_limit = RateLimitSettings().to_rate_limit()

    mount_revocation_endpoint(
        app, provider, path=settings.endpoint_path, rate_limit=rate_limit
    )
    return app
