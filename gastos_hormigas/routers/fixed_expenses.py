import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel, select

from ..database import get_session
from ..dependencies import get_current_user
from ..models.fixed_expense import FixedExpense
from ..models.user import User
from ..services.categories import get_owned_category


router = APIRouter(
    prefix="/fixed-expenses",
    tags=["fixed-expenses"],
)


class FixedExpenseBase(SQLModel):
    description: str = Field(min_length=1, max_length=255)
    amount: float = Field(gt=0)
    category_id: uuid.UUID
    day_of_month: int = Field(ge=1, le=31)
    is_active: bool = True


class FixedExpenseCreate(FixedExpenseBase):
    pass


class FixedExpenseUpdate(SQLModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[float] = Field(default=None, gt=0)
    category_id: Optional[uuid.UUID] = None
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    is_active: Optional[bool] = None


class FixedExpenseRead(FixedExpenseBase):
    id: uuid.UUID
    user_id: uuid.UUID
    last_posted_year: Optional[int] = None
    last_posted_month: Optional[int] = None
    created_at: datetime
    updated_at: datetime


def _check_category(session: Session, user: User, category_id: uuid.UUID) -> None:
    if get_owned_category(session, user.id, category_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Categoría no encontrada o no pertenece al usuario",
        )


def _get_owned(session: Session, user: User, fixed_expense_id: uuid.UUID) -> FixedExpense:
    fixed = session.get(FixedExpense, fixed_expense_id)
    if not fixed or fixed.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fixed expense not found")
    return fixed


@router.get("", response_model=List[FixedExpenseRead])
def list_fixed_expenses(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = (
        select(FixedExpense)
        .where(FixedExpense.user_id == current_user.id)
        .order_by(FixedExpense.day_of_month.asc(), FixedExpense.description.asc())
    )
    return session.exec(stmt).all()


@router.post(
    "",
    response_model=FixedExpenseRead,
    status_code=status.HTTP_201_CREATED,
)
def create_fixed_expense(
    payload: FixedExpenseCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _check_category(session, current_user, payload.category_id)
    now = datetime.now(timezone.utc)
    fixed = FixedExpense(
        user_id=current_user.id,
        description=payload.description,
        amount=payload.amount,
        category_id=payload.category_id,
        day_of_month=payload.day_of_month,
        is_active=payload.is_active,
        created_at=now,
        updated_at=now,
    )
    session.add(fixed)
    session.commit()
    session.refresh(fixed)
    return fixed


@router.patch("/{fixed_expense_id}", response_model=FixedExpenseRead)
def update_fixed_expense(
    fixed_expense_id: uuid.UUID,
    payload: FixedExpenseUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    fixed = _get_owned(session, current_user, fixed_expense_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    if "category_id" in changes:
        _check_category(session, current_user, changes["category_id"])

    for field, value in changes.items():
        setattr(fixed, field, value)
    fixed.updated_at = datetime.now(timezone.utc)
    session.add(fixed)
    session.commit()
    session.refresh(fixed)
    return fixed


@router.delete(
    "/{fixed_expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_fixed_expense(
    fixed_expense_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    fixed = _get_owned(session, current_user, fixed_expense_id)
    session.delete(fixed)
    session.commit()
    return None
