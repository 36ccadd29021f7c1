"""
Daily fixed-expense poster.

For every user, each active fixed expense that is due this month and not yet
posted becomes an automatic Expense, and its month marker is advanced. All
writes for one user are committed together; a failing user is rolled back,
logged and skipped whatever the error. Safe to re-run on the same day.

    python -m gastos_hormigas.jobs.post_fixed_expenses
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ..config import settings
from ..core.months import MonthMarker
from ..models.category import Category, Subcategory
from ..models.expense import Expense
from ..models.fixed_expense import FixedExpense
from ..models.user import User

logger = logging.getLogger(__name__)

FIXED_SUBCATEGORY = "Gasto Fijo"
FALLBACK_SUBCATEGORY = "Varios"


@dataclass
class PostingReport:
    users_processed: int = 0
    expenses_posted: int = 0
    failed_users: List[uuid.UUID] = field(default_factory=list)


def is_due(fixed: FixedExpense, today: date) -> bool:
    marker = MonthMarker.of(today)
    if fixed.last_posted == marker:
        return False
    return today.day >= min(fixed.day_of_month, marker.last_day)


def resolve_subcategory(session: Session, category_id: uuid.UUID) -> str:
    """Prefer the category's "Gasto Fijo" subcategory, then the first one added, then "Varios"."""
    if session.get(Category, category_id) is None:
        return FALLBACK_SUBCATEGORY
    names = session.exec(
        select(Subcategory.name)
        .where(Subcategory.category_id == category_id)
        .order_by(Subcategory.position, Subcategory.created_at)
    ).all()
    if FIXED_SUBCATEGORY in names:
        return FIXED_SUBCATEGORY
    return names[0] if names else FALLBACK_SUBCATEGORY


def post_for_user(session: Session, user_id: uuid.UUID, today: date) -> int:
    """Flush the due postings of one user. The caller commits."""
    marker = MonthMarker.of(today)
    fixed_expenses = session.exec(
        select(FixedExpense).where(
            FixedExpense.user_id == user_id,
            FixedExpense.is_active == True,  # noqa: E712
        )
    ).all()

    posted = 0
    now = datetime.now(timezone.utc)
    for fixed in fixed_expenses:
        if not is_due(fixed, today):
            continue
        expense = Expense(
            user_id=user_id,
            amount=fixed.amount,
            description=fixed.description,
            category_id=fixed.category_id,
            sub_category=resolve_subcategory(session, fixed.category_id),
            expense_date=marker.clamp_day(fixed.day_of_month),
            is_automatic=True,
            created_at=now,
            updated_at=now,
        )
        fixed.mark_posted(marker)
        session.add(expense)
        session.add(fixed)
        posted += 1
        logger.info(
            "Posted fixed expense %s (%s) for user %s on %s",
            fixed.id, fixed.description, user_id, expense.expense_date,
        )
    session.flush()
    return posted


def post_fixed_expenses(target: Optional[Engine] = None, today: Optional[date] = None) -> PostingReport:
    if target is None:
        from ..database import engine as target
    today = today or date.today()
    report = PostingReport()
    logger.info("Fixed-expense posting started for %s", today.isoformat())

    with Session(target) as session:
        user_ids = session.exec(select(User.id).order_by(User.created_at)).all()
        for user_id in user_ids:
            try:
                posted = post_for_user(session, user_id, today)
                session.commit()
            except Exception:
                session.rollback()
                report.failed_users.append(user_id)
                logger.exception("Fixed-expense posting failed for user %s", user_id)
                continue
            report.users_processed += 1
            report.expenses_posted += posted

    logger.info(
        "Fixed-expense posting finished: %d users, %d expenses posted, %d failures",
        report.users_processed, report.expenses_posted, len(report.failed_users),
    )
    return report


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    post_fixed_expenses()


if __name__ == "__main__":
    main()
