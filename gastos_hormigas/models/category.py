import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", index=True)

    name: str = Field(max_length=50)
    icon: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, max_length=20)
    is_default: bool = Field(default=False)
    budget: Optional[float] = Field(default=None, ge=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Subcategory(SQLModel, table=True):
    __tablename__ = "subcategories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    # Deleting a category removes its subcategories in the database
    category_id: uuid.UUID = Field(foreign_key="categories.id", ondelete="CASCADE", index=True)

    name: str = Field(max_length=50)
    # insertion order within the category
    position: int = Field(default=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
