import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlmodel import Session

from ..models.auth import AuthAccount
from ..models.user import User

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "Usuario"


def default_display_name(email: Optional[str], display_name: Optional[str] = None) -> str:
    if display_name and display_name.strip():
        return display_name.strip()
    if email and "@" in email:
        return email.split("@", 1)[0]
    return DEFAULT_DISPLAY_NAME


def get_profile(session: Session, user_id: uuid.UUID) -> Optional[User]:
    return session.get(User, user_id)


def ensure_profile(
    session: Session,
    user_id: uuid.UUID,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
) -> Tuple[User, bool]:
    """Create the profile row if absent. Returns (profile, created)."""
    existing = session.get(User, user_id)
    if existing is not None:
        return existing, False

    now = datetime.now(timezone.utc)
    user = User(
        id=user_id,
        display_name=default_display_name(email, display_name),
        email=email,
        created_at=now,
        updated_at=now,
    )
    session.add(user)
    session.flush()
    logger.info("Created profile for user %s", user_id)
    return user, True


def attach_email(session: Session, user_id: uuid.UUID, email: str) -> None:
    """Fill in the email of a profile created while the account was anonymous."""
    user = session.get(User, user_id)
    if user is None or user.email:
        return
    user.email = email
    if user.display_name == DEFAULT_DISPLAY_NAME:
        user.display_name = default_display_name(email)
    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    session.flush()


def update_profile(session: Session, user: User, changes: Dict[str, Any]) -> User:
    for field, value in changes.items():
        setattr(user, field, value)
    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def delete_account(session: Session, user_id: uuid.UUID) -> None:
    """Remove the auth account; profile and owned rows go with it by FK cascade."""
    account = session.get(AuthAccount, user_id)
    if account is not None:
        session.delete(account)
    session.commit()
    session.expunge_all()
    logger.info("Deleted account %s", user_id)
