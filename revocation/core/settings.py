"""Application settings loaded from environment variables."""

from typing import Any, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from revocation.oauth.rate_limit import (
    MAX_REQUESTS_DEFAULT,
    RATE_LIMIT_MESSAGE_DEFAULT,
    WINDOW_SECONDS_DEFAULT,
)

DB_POOL_SIZE_DEFAULT = 5
DB_MAX_OVERFLOW_DEFAULT = 10
DB_PORT_DEFAULT = 5432


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_prefix="REVOKE_DB_")

    host: str = "localhost"
    port: int = DB_PORT_DEFAULT
    user: str = "revoke"
    password: str = "revoke"
    database: str = "revoke"
    pool_size: int = DB_POOL_SIZE_DEFAULT
    max_overflow: int = DB_MAX_OVERFLOW_DEFAULT

    @property
    def async_url(self) -> str:
        """Build async PostgreSQL connection URL."""
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class RevocationSettings(BaseSettings):
    """Endpoint placement and logging."""

    model_config = SettingsConfigDict(env_prefix="REVOKE_")

    endpoint_path: str = "/oauth/revoke"
    log_level: str = "INFO"


class RateLimitSettings(BaseSettings):
    """Rate limiting for the revocation endpoint."""

    model_config = SettingsConfigDict(env_prefix="REVOKE_RATE_LIMIT_")

    enabled: bool = True
    window_seconds: float = WINDOW_SECONDS_DEFAULT
    max_requests: int = MAX_REQUESTS_DEFAULT
    standard_headers: bool = True
    legacy_headers: bool = False
    message: str = RATE_LIMIT_MESSAGE_DEFAULT

    def to_rate_limit(self) -> dict[str, Any] | Literal[False]:
        """Overrides for the endpoint, or False when limiting is off."""
        if not self.enabled:
            return False
        return self.model_dump(exclude={"enabled"})
