"""Capability interfaces consumed by the revocation endpoint."""

import secrets
from typing import Protocol

from revocation.oauth.types import OAuthClientInformation, RevocationRequest


class OAuthRegisteredClientsStore(Protocol):
    """Resolves client credentials presented to the endpoint."""

    async def get_client(self, client_id: str) -> OAuthClientInformation | None: ...

    def verify_client_secret(
        self, client: OAuthClientInformation, client_secret: str
    ) -> bool: ...


class TokenRevoker(Protocol):
    """Optional provider capability: revoke a token for a client."""

    async def __call__(
        self, client: OAuthClientInformation, request: RevocationRequest
    ) -> None: ...


class OAuthServerProvider(Protocol):
    """Authorization-server backend.

    `revoke_token` is optional on real providers; the endpoint refuses to
    build when it is missing.
    """

    @property
    def clients_store(self) -> OAuthRegisteredClientsStore: ...

    async def revoke_token(
        self, client: OAuthClientInformation, request: RevocationRequest
    ) -> None: ...


class InMemoryClientsStore:
    """Clients store backed by a dict of plaintext-secret clients."""

    def __init__(self, clients: list[OAuthClientInformation] | None = None) -> None:
        self._clients = {c.client_id: c for c in clients or []}

    def add(self, client: OAuthClientInformation) -> None:
        self._clients[client.client_id] = client

    async def get_client(self, client_id: str) -> OAuthClientInformation | None:
        return self._clients.get(client_id)

    def verify_client_secret(
        self, client: OAuthClientInformation, client_secret: str
    ) -> bool:
        if client.client_secret is None:
            return False
        return secrets.compare_digest(
            client.client_secret.encode(), client_secret.encode()
        )
