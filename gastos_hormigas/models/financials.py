import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Financials(SQLModel, table=True):
    __tablename__ = "financials"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", index=True, unique=True)

    monthly_income: float = Field(default=0, ge=0)
    emergency_fund: float = Field(default=0, ge=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
