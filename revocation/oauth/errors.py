"""OAuth 2.0 error taxonomy (RFC 6749 section 5.2, RFC 7009 section 2.2.1)."""

from typing import Any, ClassVar


class ProviderConfigurationError(Exception):
    """Raised at setup time when a provider lacks a required capability."""


class OAuthError(Exception):
    """Protocol-level failure rendered as an OAuth error response."""

    error_code: ClassVar[str] = "invalid_request"
    is_server_error: ClassVar[bool] = False

    def __init__(self, message: str, error_uri: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error_uri = error_uri

    @property
    def status_code(self) -> int:
        """HTTP status used when this error ends the business stage."""
        return 500 if self.is_server_error else 400

    def to_response_object(self) -> dict[str, Any]:
        """Render the standard `{error, error_description}` body."""
        body: dict[str, Any] = {
            "error": self.error_code,
            "error_description": self.message,
        }
        if self.error_uri:
            body["error_uri"] = self.error_uri
        return body


class InvalidRequestError(OAuthError):
    error_code = "invalid_request"


class InvalidClientError(OAuthError):
    error_code = "invalid_client"


class InvalidGrantError(OAuthError):
    error_code = "invalid_grant"


class UnauthorizedClientError(OAuthError):
    error_code = "unauthorized_client"


class UnsupportedGrantTypeError(OAuthError):
    error_code = "unsupported_grant_type"


class InvalidScopeError(OAuthError):
    error_code = "invalid_scope"


class AccessDeniedError(OAuthError):
    error_code = "access_denied"


class ServerError(OAuthError):
    """Unexpected condition; always rendered with HTTP 500."""

    error_code = "server_error"
    is_server_error = True


class TemporarilyUnavailableError(OAuthError):
    error_code = "temporarily_unavailable"


class UnsupportedResponseTypeError(OAuthError):
    error_code = "unsupported_response_type"


class UnsupportedTokenTypeError(OAuthError):
    error_code = "unsupported_token_type"


class InvalidTokenError(OAuthError):
    error_code = "invalid_token"


class InsufficientScopeError(OAuthError):
    error_code = "insufficient_scope"


class MethodNotAllowedError(OAuthError):
    error_code = "method_not_allowed"


class TooManyRequestsError(OAuthError):
    error_code = "too_many_requests"


class InvalidClientMetadataError(OAuthError):
    error_code = "invalid_client_metadata"


class CustomOAuthError(OAuthError):
    """Provider-defined error kind outside the standard set."""

    def __init__(
        self, error_code: str, message: str, error_uri: str | None = None
    ) -> None:
        super().__init__(message, error_uri)
        self.custom_error_code = error_code

    def to_response_object(self) -> dict[str, Any]:
        body = super().to_response_object()
        body["error"] = self.custom_error_code
        return body
