import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel, select

from ..database import get_session
from ..dependencies import get_current_user
from ..models.asset import ASSET_TYPES, Asset
from ..models.user import User


router = APIRouter(
    prefix="/assets",
    tags=["assets"],
)


class AssetBase(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    type: str = Field(default="cash", max_length=20)
    value: float = Field(ge=0)
    description: Optional[str] = Field(default=None, max_length=255)


class AssetCreate(AssetBase):
    pass


class AssetUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[str] = None
    value: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, max_length=255)


class AssetRead(AssetBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


def _check_type(asset_type: Optional[str]) -> None:
    if asset_type is not None and asset_type not in ASSET_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid asset type")


def _get_owned(session: Session, user: User, asset_id: uuid.UUID) -> Asset:
    asset = session.get(Asset, asset_id)
    if not asset or asset.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")
    return asset


@router.get("", response_model=List[AssetRead])
def list_assets(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = select(Asset).where(Asset.user_id == current_user.id).order_by(Asset.value.desc(), Asset.name.asc())
    return session.exec(stmt).all()


@router.post(
    "",
    response_model=AssetRead,
    status_code=status.HTTP_201_CREATED,
)
def create_asset(
    payload: AssetCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _check_type(payload.type)
    now = datetime.now(timezone.utc)
    asset = Asset(user_id=current_user.id, created_at=now, updated_at=now, **payload.model_dump())
    session.add(asset)
    session.commit()
    session.refresh(asset)
    return asset


@router.patch("/{asset_id}", response_model=AssetRead)
def update_asset(
    asset_id: uuid.UUID,
    payload: AssetUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Edita un activo; actualizar sólo `value` es la revalorización habitual."""
    asset = _get_owned(session, current_user, asset_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    _check_type(changes.get("type"))

    for field, value in changes.items():
        setattr(asset, field, value)
    asset.updated_at = datetime.now(timezone.utc)
    session.add(asset)
    session.commit()
    session.refresh(asset)
    return asset


@router.delete(
    "/{asset_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_asset(
    asset_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    asset = _get_owned(session, current_user, asset_id)
    session.delete(asset)
    session.commit()
    return None
