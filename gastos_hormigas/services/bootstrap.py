import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import BootstrapError
from ..models.financials import Financials
from . import categories, users

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    profile_created: bool
    categories_seeded: bool
    financials_created: bool


def ensure_financials(session: Session, user_id: uuid.UUID) -> bool:
    existing = session.exec(select(Financials).where(Financials.user_id == user_id)).first()
    if existing is not None:
        return False
    now = datetime.now(timezone.utc)
    session.add(Financials(user_id=user_id, monthly_income=0, created_at=now, updated_at=now))
    session.flush()
    return True


def bootstrap_user(
    session: Session,
    user_id: uuid.UUID,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
) -> BootstrapResult:
    """
    Idempotent first-login setup: profile row, default categories and a
    financials row. Each step is a no-op when its data already exists.
    Rows are flushed, not committed.
    """
    try:
        _, profile_created = users.ensure_profile(session, user_id, email, display_name)
        seeded = categories.initialize_default_categories(session, user_id)
        financials_created = ensure_financials(session, user_id)
    except SQLAlchemyError as exc:
        logger.error("Error al inicializar datos de usuario %s: %s", user_id, exc)
        raise BootstrapError(f"Bootstrap failed for user {user_id}") from exc

    return BootstrapResult(profile_created, seeded, financials_created)
