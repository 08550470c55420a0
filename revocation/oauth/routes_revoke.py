"""OAuth token revocation endpoint (RFC 7009)."""

import logging

from fastapi import FastAPI
from pydantic import ValidationError
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import Receive, Scope, Send

from revocation.oauth.client_auth import ClientAuthenticator
from revocation.oauth.errors import (
    InvalidRequestError,
    OAuthError,
    ProviderConfigurationError,
    ServerError,
)
from revocation.oauth.pipeline import (
    Stage,
    allowed_methods,
    run_pipeline,
    server_error_response,
)
from revocation.oauth.provider import OAuthServerProvider, TokenRevoker
from revocation.oauth.rate_limit import (
    RateLimitConfig,
    RateLimiter,
    merge_rate_limit_options,
)
from revocation.oauth.types import (
    RequestContext,
    RevocationRequest,
    stringify_validation_error,
)

logger = logging.getLogger(__name__)

REVOCATION_PATH_DEFAULT = "/oauth/revoke"


class RevocationEndpoint:
    """ASGI app serving token revocation for one provider.

    Stages run in a fixed order: CORS, method gate, rate limit (unless
    disabled), client authentication, then revocation itself.
    """

    def __init__(
        self,
        provider: OAuthServerProvider,
        rate_limit: RateLimitConfig = None,
    ) -> None:
        revoke = getattr(provider, "revoke_token", None)
        if not callable(revoke):
            raise ProviderConfigurationError(
                "Auth provider does not support revoking tokens"
            )
        self._revoke_token: TokenRevoker = revoke

        stages: list[Stage] = [allowed_methods(["POST"])]
        if rate_limit is not False:
            stages.append(RateLimiter(merge_rate_limit_options(rate_limit)))
        stages.append(ClientAuthenticator(provider.clients_store))
        stages.append(self._revoke)
        self.stages: tuple[Stage, ...] = tuple(stages)

        self._app = CORSMiddleware(
            self._dispatch,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._app(scope, receive, send)

    async def _dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        response = await run_pipeline(self.stages, RequestContext(request=request))
        # CORSMiddleware only decorates requests carrying an Origin header
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        await response(scope, receive, send)

    async def _revoke(self, ctx: RequestContext) -> Response:
        headers = {"Cache-Control": "no-store"}
        try:
            try:
                revocation = RevocationRequest.model_validate(ctx.form)
            except ValidationError as e:
                raise InvalidRequestError(stringify_validation_error(e)) from e

            if ctx.client is None:
                raise ServerError("Internal Server Error")

            await self._revoke_token(ctx.client, revocation)
        except OAuthError as e:
            return JSONResponse(
                e.to_response_object(), status_code=e.status_code, headers=headers
            )
        except Exception:
            logger.exception("Provider failed to revoke token")
            response = server_error_response()
            response.headers.update(headers)
            return response

        return JSONResponse({}, status_code=200, headers=headers)


def revocation_handler(
    provider: OAuthServerProvider, rate_limit: RateLimitConfig = None
) -> RevocationEndpoint:
    """Build the revocation endpoint; `rate_limit=False` disables limiting."""
    return RevocationEndpoint(provider, rate_limit=rate_limit)


def mount_revocation_endpoint(
    app: FastAPI,
    provider: OAuthServerProvider,
    path: str = REVOCATION_PATH_DEFAULT,
    rate_limit: RateLimitConfig = None,
) -> RevocationEndpoint:
    """Route every method on *path* to a new revocation endpoint."""
    endpoint = revocation_handler(provider, rate_limit=rate_limit)
    app.router.add_route(path, endpoint, include_in_schema=False)
    return endpoint
