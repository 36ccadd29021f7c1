import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Field, Session, SQLModel

from ..database import get_session
from ..dependencies import get_current_user
from ..models.user import SUPPORTED_CURRENCIES, SUPPORTED_LANGUAGES, SUPPORTED_THEMES, User
from ..services import users as user_service


router = APIRouter(
    prefix="/users",
    tags=["users"],
)


class UserRead(SQLModel):
    id: uuid.UUID
    display_name: str
    email: Optional[str] = None
    currency: str
    theme: str
    language: str
    created_at: datetime
    updated_at: datetime


class UserUpdate(SQLModel):
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    theme: Optional[str] = None
    language: Optional[str] = None


@router.get("/me", response_model=UserRead)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserRead)
def update_profile(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )

    if "currency" in changes:
        changes["currency"] = changes["currency"].strip().upper()
        if changes["currency"] not in SUPPORTED_CURRENCIES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid currency")
    if "theme" in changes and changes["theme"] not in SUPPORTED_THEMES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid theme")
    if "language" in changes and changes["language"] not in SUPPORTED_LANGUAGES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid language")
    if "display_name" in changes:
        changes["display_name"] = changes["display_name"].strip()

    return user_service.update_profile(session, current_user, changes)


@router.delete(
    "/me",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_account(
    response: Response,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Borra la cuenta y, por cascada, todos sus datos."""
    user_service.delete_account(session, current_user.id)
    response.delete_cookie(key="access_token", path="/")
    return None
