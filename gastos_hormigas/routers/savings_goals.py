import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel, select

from ..database import get_session
from ..dependencies import get_current_user
from ..models.savings_goal import SavingsGoal
from ..models.user import User


router = APIRouter(
    prefix="/savings-goals",
    tags=["savings-goals"],
)


class SavingsGoalBase(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    target_amount: float = Field(gt=0)
    target_date: Optional[date] = None
    icon: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, max_length=20)
    is_active: bool = True


class SavingsGoalCreate(SavingsGoalBase):
    pass


class SavingsGoalUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    target_amount: Optional[float] = Field(default=None, gt=0)
    target_date: Optional[date] = None
    icon: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, max_length=20)
    is_active: Optional[bool] = None


class SavingsGoalRead(SavingsGoalBase):
    id: uuid.UUID
    user_id: uuid.UUID
    current_amount: float
    created_at: datetime
    updated_at: datetime


class FundsIn(SQLModel):
    amount: float = Field(gt=0)


def _get_owned(session: Session, user: User, goal_id: uuid.UUID) -> SavingsGoal:
    goal = session.get(SavingsGoal, goal_id)
    if not goal or goal.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Savings goal not found")
    return goal


def _save(session: Session, goal: SavingsGoal) -> SavingsGoal:
    goal.updated_at = datetime.now(timezone.utc)
    session.add(goal)
    session.commit()
    session.refresh(goal)
    return goal


@router.get("", response_model=List[SavingsGoalRead])
def list_goals(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = select(SavingsGoal).where(SavingsGoal.user_id == current_user.id).order_by(SavingsGoal.created_at.asc())
    return session.exec(stmt).all()


@router.post(
    "",
    response_model=SavingsGoalRead,
    status_code=status.HTTP_201_CREATED,
)
def create_goal(
    payload: SavingsGoalCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    now = datetime.now(timezone.utc)
    goal = SavingsGoal(
        user_id=current_user.id,
        current_amount=0,
        created_at=now,
        updated_at=now,
        **payload.model_dump(),
    )
    session.add(goal)
    session.commit()
    session.refresh(goal)
    return goal


@router.patch("/{goal_id}", response_model=SavingsGoalRead)
def update_goal(
    goal_id: uuid.UUID,
    payload: SavingsGoalUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    goal = _get_owned(session, current_user, goal_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    for field, value in changes.items():
        setattr(goal, field, value)
    return _save(session, goal)


@router.post("/{goal_id}/add-funds", response_model=SavingsGoalRead)
def add_funds(
    goal_id: uuid.UUID,
    payload: FundsIn,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    goal = _get_owned(session, current_user, goal_id)
    goal.current_amount = round(goal.current_amount + payload.amount, 2)
    return _save(session, goal)


@router.post("/{goal_id}/remove-funds", response_model=SavingsGoalRead)
def remove_funds(
    goal_id: uuid.UUID,
    payload: FundsIn,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    goal = _get_owned(session, current_user, goal_id)
    if payload.amount > goal.current_amount:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No puedes retirar más de lo ahorrado",
        )
    goal.current_amount = round(goal.current_amount - payload.amount, 2)
    return _save(session, goal)


@router.delete(
    "/{goal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_goal(
    goal_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    goal = _get_owned(session, current_user, goal_id)
    session.delete(goal)
    session.commit()
    return None
