"""Client authentication stage (client_secret_post)."""

import logging
import time

from pydantic import ValidationError
from starlette.responses import JSONResponse, Response

from revocation.oauth.errors import (
    InvalidClientError,
    InvalidRequestError,
    OAuthError,
    ServerError,
)
from revocation.oauth.provider import OAuthRegisteredClientsStore
from revocation.oauth.types import (
    ClientAuthenticatedRequest,
    OAuthClientInformation,
    RequestContext,
    read_form,
    stringify_validation_error,
)

logger = logging.getLogger(__name__)


def _secret_expired(client: OAuthClientInformation) -> bool:
    expires_at = client.client_secret_expires_at
    return bool(expires_at) and expires_at < int(time.time())


class ClientAuthenticator:
    """Resolves body credentials against the provider's clients store."""

    def __init__(self, clients_store: OAuthRegisteredClientsStore) -> None:
        self.clients_store = clients_store

    async def authenticate(self, form: dict[str, str]) -> OAuthClientInformation:
        """Return the client for *form* credentials or raise an OAuthError."""
        try:
            creds = ClientAuthenticatedRequest.model_validate(form)
        except ValidationError as e:
            raise InvalidRequestError(stringify_validation_error(e)) from e

        client = await self.clients_store.get_client(creds.client_id)
        if client is None:
            raise InvalidClientError("Invalid client_id")

        if client.client_secret is not None:
            if not creds.client_secret:
                raise InvalidClientError("Client secret is required")
            if not self.clients_store.verify_client_secret(
                client, creds.client_secret
            ):
                raise InvalidClientError("Invalid client_secret")
            if _secret_expired(client):
                raise InvalidClientError("Client secret has expired")

        return client

    async def __call__(self, ctx: RequestContext) -> RequestContext | Response:
        try:
            form = await read_form(ctx.request)
            client = await self.authenticate(form)
        except OAuthError as e:
            logger.debug("Client authentication failed: %s", e.message)
            return JSONResponse(e.to_response_object(), status_code=e.status_code)
        except Exception:
            logger.exception("Unexpected error during client authentication")
            error = ServerError("Internal Server Error")
            return JSONResponse(error.to_response_object(), status_code=500)

        return ctx.model_copy(update={"form": form, "client": client})
