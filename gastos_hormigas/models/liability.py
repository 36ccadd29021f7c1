import uuid
from datetime import datetime, date, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


LIABILITY_TYPES = ("credit_card", "loan", "mortgage", "student_loan", "other")


class Liability(SQLModel, table=True):
    __tablename__ = "liabilities"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", index=True)

    name: str = Field(max_length=100)
    type: str = Field(max_length=20)
    # outstanding balance; original_amount keeps what was borrowed
    amount: float = Field(ge=0)
    original_amount: Optional[float] = Field(default=None, ge=0)
    interest_rate: Optional[float] = Field(default=None, ge=0)
    monthly_payment: Optional[float] = Field(default=None, ge=0)
    # months
    duration: Optional[int] = Field(default=None, ge=1)
    due_date: Optional[date] = Field(default=None)
    description: Optional[str] = Field(default=None, max_length=255)

    is_archived: bool = Field(default=False)
    archived_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
