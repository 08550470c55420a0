"""Type definitions for the revocation endpoint."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from revocation.oauth.errors import InvalidRequestError

TokenTypeHint = Literal["access_token", "refresh_token"]


class RevocationRequest(BaseModel):
    """RFC 7009 section 2.1 request body."""

    token: str
    token_type_hint: TokenTypeHint | None = None


class ClientAuthenticatedRequest(BaseModel):
    """Client credentials carried in the body (client_secret_post)."""

    client_id: str
    client_secret: str | None = None


class OAuthClientInformation(BaseModel):
    """Registered client as resolved by the clients store."""

    model_config = ConfigDict(extra="allow")

    client_id: str
    client_secret: str | None = None
    client_id_issued_at: int | None = None
    client_secret_expires_at: int | None = None
    client_name: str | None = None
    scope: str | None = None


class RequestContext(BaseModel):
    """Per-request state threaded through the endpoint stages."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    request: Request
    form: dict[str, str] = Field(default_factory=dict)
    client: OAuthClientInformation | None = None
    response_headers: dict[str, str] = Field(default_factory=dict)

    def with_headers(self, headers: dict[str, str]) -> "RequestContext":
        """Return a copy that will also attach *headers* to the response."""
        return self.model_copy(
            update={"response_headers": {**self.response_headers, **headers}}
        )


def stringify_validation_error(error: ValidationError) -> str:
    """Flatten pydantic errors into `field: message` lines."""
    return "\n".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or 'body'}: {err['msg']}"
        for err in error.errors()
    )


async def read_form(request: Request) -> dict[str, str]:
    """Return the urlencoded body fields; other content types yield {}."""
    try:
        form = await request.form()
    except (HTTPException, MultiPartException) as exc:
        raise InvalidRequestError("Request body could not be parsed") from exc
    return {key: value for key, value in form.items() if isinstance(value, str)}
