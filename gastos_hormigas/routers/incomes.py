import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel, select

from ..database import get_session
from ..dependencies import get_current_user
from ..models.income import INCOME_CATEGORIES, RECURRENCE_FREQUENCIES, Income
from ..models.user import User


router = APIRouter(
    prefix="/incomes",
    tags=["incomes"],
)


class IncomeBase(SQLModel):
    amount: float = Field(gt=0)
    description: str = Field(min_length=1, max_length=255)
    category: str = Field(default="other", max_length=20)
    income_date: Optional[date] = None
    is_recurring: bool = False
    recurrence_frequency: Optional[str] = None


class IncomeCreate(IncomeBase):
    pass


class IncomeUpdate(SQLModel):
    amount: Optional[float] = Field(default=None, gt=0)
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = None
    income_date: Optional[date] = None
    is_recurring: Optional[bool] = None
    recurrence_frequency: Optional[str] = None


class IncomeRead(IncomeBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


def _validate(category: Optional[str], is_recurring: bool, frequency: Optional[str]) -> None:
    if category is not None and category not in INCOME_CATEGORIES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid income category")
    if frequency is not None and frequency not in RECURRENCE_FREQUENCIES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid recurrence frequency")
    if is_recurring and frequency is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="recurrence_frequency is required for recurring incomes",
        )


def _get_owned(session: Session, user: User, income_id: uuid.UUID) -> Income:
    income = session.get(Income, income_id)
    if not income or income.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Income not found")
    return income


@router.get("", response_model=List[IncomeRead])
def list_incomes(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = (
        select(Income)
        .where(Income.user_id == current_user.id)
        .order_by(Income.income_date.desc(), Income.created_at.desc())
    )
    return session.exec(stmt).all()


@router.post(
    "",
    response_model=IncomeRead,
    status_code=status.HTTP_201_CREATED,
)
def create_income(
    payload: IncomeCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _validate(payload.category, payload.is_recurring, payload.recurrence_frequency)
    now = datetime.now(timezone.utc)
    income = Income(
        user_id=current_user.id,
        amount=payload.amount,
        description=payload.description,
        category=payload.category,
        income_date=payload.income_date or date.today(),
        is_recurring=payload.is_recurring,
        recurrence_frequency=payload.recurrence_frequency if payload.is_recurring else None,
        created_at=now,
        updated_at=now,
    )
    session.add(income)
    session.commit()
    session.refresh(income)
    return income


@router.patch("/{income_id}", response_model=IncomeRead)
def update_income(
    income_id: uuid.UUID,
    payload: IncomeUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    income = _get_owned(session, current_user, income_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    for field, value in changes.items():
        setattr(income, field, value)
    if not income.is_recurring:
        income.recurrence_frequency = None
    _validate(income.category, income.is_recurring, income.recurrence_frequency)

    income.updated_at = datetime.now(timezone.utc)
    session.add(income)
    session.commit()
    session.refresh(income)
    return income


@router.delete(
    "/{income_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_income(
    income_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    income = _get_owned(session, current_user, income_id)
    session.delete(income)
    session.commit()
    return None
