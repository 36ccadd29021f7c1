import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import CheckConstraint
from sqlmodel import SQLModel, Field

from ..core.months import MonthMarker


class FixedExpense(SQLModel, table=True):
    __tablename__ = "fixed_expenses"
    __table_args__ = (
        CheckConstraint("day_of_month between 1 and 31", name="fixed_expenses_day_of_month_check"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", index=True)

    description: str = Field(max_length=255)
    amount: float = Field(gt=0)
    # no FK: a deleted category makes the poster fall back to "Varios"
    category_id: uuid.UUID = Field(index=True)
    day_of_month: int = Field(ge=1, le=31)

    # month 1-12
    last_posted_year: Optional[int] = Field(default=None)
    last_posted_month: Optional[int] = Field(default=None)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def last_posted(self) -> Optional[MonthMarker]:
        if self.last_posted_year is None or self.last_posted_month is None:
            return None
        return MonthMarker(self.last_posted_year, self.last_posted_month)

    def mark_posted(self, marker: MonthMarker) -> None:
        self.last_posted_year = marker.year
        self.last_posted_month = marker.month
        self.updated_at = datetime.now(timezone.utc)
