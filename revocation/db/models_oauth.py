"""SQLAlchemy models for OAuth clients and issued tokens."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from revocation.db.base import BaseEntity


class OAuthClientEntity(BaseEntity):
    """Registered OAuth client allowed to revoke its tokens."""

    __tablename__ = "oauth_clients"

    id: Mapped[str] = mapped_column(String(48), primary_key=True)
    client_secret_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    scope: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    client_id_issued_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    client_secret_expires_at: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class OAuthTokenEntity(BaseEntity):
    """Issued access and refresh token pair, stored as SHA-256 hashes."""

    __tablename__ = "oauth_tokens"

    id: Mapped[str] = mapped_column(String(48), primary_key=True)
    client_id: Mapped[str] = mapped_column(
        String(48), ForeignKey("oauth_clients.id"), nullable=False
    )
    access_token_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    refresh_token_hash: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    scope: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    refresh_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
