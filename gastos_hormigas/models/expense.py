import uuid
from datetime import datetime, date, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


class Expense(SQLModel, table=True):
    __tablename__ = "expenses"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        ondelete="CASCADE",
        index=True
    )

    amount: float
    description: str
    category_id: uuid.UUID = Field(index=True)
    sub_category: str = Field(default="Varios", max_length=50)
    expense_date: date = Field(default_factory=date.today, index=True)
    # posted by the fixed-expense job
    is_automatic: bool = Field(default=False)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    deleted_at: Optional[datetime] = Field(default=None)
