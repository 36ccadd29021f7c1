import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel, select

from ..database import get_session
from ..dependencies import get_current_user
from ..models.liability import LIABILITY_TYPES, Liability
from ..models.user import User


router = APIRouter(
    prefix="/liabilities",
    tags=["liabilities"],
)


class LiabilityBase(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    type: str = Field(default="other", max_length=20)
    amount: float = Field(ge=0)
    original_amount: Optional[float] = Field(default=None, ge=0)
    interest_rate: Optional[float] = Field(default=None, ge=0)
    monthly_payment: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=1)
    due_date: Optional[date] = None
    description: Optional[str] = Field(default=None, max_length=255)


class LiabilityCreate(LiabilityBase):
    pass


class LiabilityUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0)
    original_amount: Optional[float] = Field(default=None, ge=0)
    interest_rate: Optional[float] = Field(default=None, ge=0)
    monthly_payment: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=1)
    due_date: Optional[date] = None
    description: Optional[str] = Field(default=None, max_length=255)


class LiabilityRead(LiabilityBase):
    id: uuid.UUID
    user_id: uuid.UUID
    is_archived: bool
    archived_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PaymentIn(SQLModel):
    amount: float = Field(gt=0)


def _check_type(liability_type: Optional[str]) -> None:
    if liability_type is not None and liability_type not in LIABILITY_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid liability type")


def _get_owned(session: Session, user: User, liability_id: uuid.UUID) -> Liability:
    liability = session.get(Liability, liability_id)
    if not liability or liability.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Liability not found")
    return liability


def _save(session: Session, liability: Liability) -> Liability:
    liability.updated_at = datetime.now(timezone.utc)
    session.add(liability)
    session.commit()
    session.refresh(liability)
    return liability


@router.get("", response_model=List[LiabilityRead])
def list_liabilities(
    include_archived: bool = False,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = select(Liability).where(Liability.user_id == current_user.id)
    if not include_archived:
        stmt = stmt.where(Liability.is_archived == False)  # noqa: E712
    stmt = stmt.order_by(Liability.amount.desc(), Liability.name.asc())
    return session.exec(stmt).all()


@router.post(
    "",
    response_model=LiabilityRead,
    status_code=status.HTTP_201_CREATED,
)
def create_liability(
    payload: LiabilityCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _check_type(payload.type)
    data = payload.model_dump()
    if data["original_amount"] is None:
        data["original_amount"] = data["amount"]
    now = datetime.now(timezone.utc)
    liability = Liability(user_id=current_user.id, created_at=now, updated_at=now, **data)
    session.add(liability)
    session.commit()
    session.refresh(liability)
    return liability


@router.patch("/{liability_id}", response_model=LiabilityRead)
def update_liability(
    liability_id: uuid.UUID,
    payload: LiabilityUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    liability = _get_owned(session, current_user, liability_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    _check_type(changes.get("type"))
    for field, value in changes.items():
        setattr(liability, field, value)
    return _save(session, liability)


@router.post("/{liability_id}/payments", response_model=LiabilityRead)
def make_payment(
    liability_id: uuid.UUID,
    payload: PaymentIn,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Registra un pago que reduce el saldo pendiente de la deuda."""
    liability = _get_owned(session, current_user, liability_id)
    if payload.amount > liability.amount:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El pago no puede superar el saldo pendiente",
        )
    liability.amount = round(liability.amount - payload.amount, 2)
    return _save(session, liability)


@router.post("/{liability_id}/archive", response_model=LiabilityRead)
def archive_liability(
    liability_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    liability = _get_owned(session, current_user, liability_id)
    liability.is_archived = True
    liability.archived_at = datetime.now(timezone.utc)
    return _save(session, liability)


@router.post("/{liability_id}/unarchive", response_model=LiabilityRead)
def unarchive_liability(
    liability_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    liability = _get_owned(session, current_user, liability_id)
    liability.is_archived = False
    liability.archived_at = None
    return _save(session, liability)


@router.delete(
    "/{liability_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_liability(
    liability_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    liability = _get_owned(session, current_user, liability_id)
    session.delete(liability)
    session.commit()
    return None
