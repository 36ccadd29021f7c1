import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlmodel import Field, Session, SQLModel, select

from ..database import get_session
from ..dependencies import get_current_user
from ..models.asset import Asset
from ..models.financials import Financials
from ..models.liability import Liability
from ..models.user import User
from ..services.bootstrap import ensure_financials


router = APIRouter(
    prefix="/financials",
    tags=["financials"],
)


class FinancialsIn(SQLModel):
    monthly_income: Optional[float] = Field(default=None, ge=0)
    emergency_fund: Optional[float] = Field(default=None, ge=0)


class FinancialsRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    monthly_income: float
    emergency_fund: float
    updated_at: datetime


class NetWorthRead(SQLModel):
    total_assets: float
    total_liabilities: float
    net_worth: float


def _load(session: Session, user: User) -> Financials:
    if ensure_financials(session, user.id):
        session.commit()
    return session.exec(select(Financials).where(Financials.user_id == user.id)).one()


@router.get("", response_model=FinancialsRead)
def get_financials(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return _load(session, current_user)


@router.put("", response_model=FinancialsRead)
def update_financials(
    payload: FinancialsIn,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    financials = _load(session, current_user)
    for field, value in changes.items():
        setattr(financials, field, value)
    financials.updated_at = datetime.now(timezone.utc)
    session.add(financials)
    session.commit()
    session.refresh(financials)
    return financials


@router.get("/net-worth", response_model=NetWorthRead)
def get_net_worth(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Activos menos deudas; las deudas archivadas no cuentan."""
    total_assets = session.exec(
        select(func.coalesce(func.sum(Asset.value), 0)).where(Asset.user_id == current_user.id)
    ).one()
    total_liabilities = session.exec(
        select(func.coalesce(func.sum(Liability.amount), 0)).where(
            Liability.user_id == current_user.id,
            Liability.is_archived == False,  # noqa: E712
        )
    ).one()
    return NetWorthRead(
        total_assets=round(total_assets, 2),
        total_liabilities=round(total_liabilities, 2),
        net_worth=round(total_assets - total_liabilities, 2),
    )
