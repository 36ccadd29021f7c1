import uuid
from datetime import datetime, date, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


INCOME_CATEGORIES = {"salary", "freelance", "investment", "gift", "other"}
RECURRENCE_FREQUENCIES = {"weekly", "biweekly", "monthly", "yearly"}


class Income(SQLModel, table=True):
    __tablename__ = "incomes"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", index=True)

    amount: float = Field(gt=0)
    description: str = Field(max_length=255)
    category: str = Field(default="other", max_length=20)
    income_date: date = Field(default_factory=date.today, index=True)
    is_recurring: bool = Field(default=False)
    recurrence_frequency: Optional[str] = Field(default=None, max_length=20)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
