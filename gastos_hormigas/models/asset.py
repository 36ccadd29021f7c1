import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


ASSET_TYPES = ("cash", "investment", "property")


class Asset(SQLModel, table=True):
    __tablename__ = "assets"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", index=True)

    name: str = Field(max_length=100)
    # cash | investment | property
    type: str = Field(max_length=20)
    value: float = Field(ge=0)
    description: Optional[str] = Field(default=None, max_length=255)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
