import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


SUPPORTED_CURRENCIES = {"USD", "EUR", "MXN", "COP", "ARS", "CLP", "PEN"}
SUPPORTED_THEMES = {"light", "dark", "system"}
SUPPORTED_LANGUAGES = {"es", "en"}


class User(SQLModel, table=True):
    """Profile row. Its id is the auth account id."""

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        foreign_key="auth_accounts.id",
        ondelete="CASCADE",
    )

    display_name: str = Field(default="Usuario", max_length=100)
    email: Optional[str] = Field(default=None, index=True, max_length=255)
    currency: str = Field(default="USD", max_length=3)
    theme: str = Field(default="system", max_length=10)
    language: str = Field(default="es", max_length=5)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
