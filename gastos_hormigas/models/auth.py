import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class AuthAccount(SQLModel, table=True):
    """Auth principal. Anonymous until a permanent identity is linked."""

    __tablename__ = "auth_accounts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    is_anonymous: bool = Field(default=False)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_sign_in_at: Optional[datetime] = Field(default=None)


class AuthIdentity(SQLModel, table=True):
    __tablename__ = "auth_identities"
    __table_args__ = (UniqueConstraint("provider", "subject"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    account_id: uuid.UUID = Field(
        foreign_key="auth_accounts.id",
        ondelete="CASCADE",
        index=True,
    )

    # "email" or "google"
    provider: str = Field(max_length=20)
    # normalized email for "email", provider user id for OAuth
    subject: str = Field(max_length=255, index=True)
    email: Optional[str] = Field(default=None, max_length=255)
    hashed_password: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AuthSession(SQLModel, table=True):
    __tablename__ = "auth_sessions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    account_id: uuid.UUID = Field(
        foreign_key="auth_accounts.id",
        ondelete="CASCADE",
        index=True,
    )

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    revoked_at: Optional[datetime] = Field(default=None)
