import re
import uuid
from datetime import datetime, date, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlmodel import SQLModel, Field, Session, select

from ..core.months import MonthMarker
from ..database import get_session
from ..dependencies import get_current_user
from ..models.category import Category
from ..models.expense import Expense
from ..models.user import User
from ..services.categories import get_owned_category

router = APIRouter(
    prefix="/expenses",
    tags=["expenses"],
)

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

# ─────────────────────────────
#   SCHEMAS (Pydantic/SQLModel)
# ─────────────────────────────

class ExpenseBase(SQLModel):
    amount: float = Field(gt=0)
    description: str = Field(min_length=1, max_length=255)
    category_id: uuid.UUID
    sub_category: str = Field(default="Varios", min_length=1, max_length=50)
    expense_date: Optional[date] = Field(default=None)


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(SQLModel):
    amount: Optional[float] = Field(default=None, gt=0)
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category_id: Optional[uuid.UUID] = None
    sub_category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    expense_date: Optional[date] = None


class ExpenseRead(ExpenseBase):
    id: uuid.UUID
    user_id: uuid.UUID
    is_automatic: bool
    created_at: datetime
    updated_at: datetime


class CategoryTotal(SQLModel):
    category_id: uuid.UUID
    name: Optional[str] = None
    total: float
    count: int


class MonthSummary(SQLModel):
    month: str
    total: float
    categories: List[CategoryTotal]


def _parse_month(month: str) -> MonthMarker:
    if not _MONTH_RE.match(month):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month")
    year, mon = month.split("-")
    return MonthMarker(int(year), int(mon))


def _month_bounds(marker: MonthMarker):
    return date(marker.year, marker.month, 1), marker.clamp_day(31)


def _check_category(session: Session, user: User, category_id: uuid.UUID) -> None:
    if get_owned_category(session, user.id, category_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Categoría no encontrada o no pertenece al usuario",
        )


def _get_owned_expense(session: Session, user: User, expense_id: uuid.UUID) -> Expense:
    expense = session.get(Expense, expense_id)
    if not expense or expense.deleted_at is not None or expense.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Expense not found",
        )
    return expense


# ─────────────────────────────
#   ENDPOINTS
# ─────────────────────────────

@router.post(
    "",
    response_model=ExpenseRead,
    status_code=status.HTTP_201_CREATED,
)
def create_expense(
    expense_in: ExpenseCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Crear un gasto nuevo para el usuario autenticado."""
    _check_category(session, current_user, expense_in.category_id)
    now = datetime.now(timezone.utc)

    expense = Expense(
        id=uuid.uuid4(),
        user_id=current_user.id,
        amount=expense_in.amount,
        description=expense_in.description,
        category_id=expense_in.category_id,
        sub_category=expense_in.sub_category,
        expense_date=expense_in.expense_date or date.today(),
        is_automatic=False,
        created_at=now,
        updated_at=now,
        deleted_at=None,
    )

    session.add(expense)
    session.commit()
    session.refresh(expense)
    return expense


@router.get(
    "",
    response_model=List[ExpenseRead],
)
def list_expenses(
    month: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Listar gastos del usuario autenticado.

    - Siempre excluye los que tienen deleted_at (soft delete).
    - `month` (YYYY-MM) filtra por mes.
    - Ordenados por fecha de gasto descendente.
    """
    statement = select(Expense).where(Expense.deleted_at.is_(None))
    statement = statement.where(Expense.user_id == current_user.id)
    if month:
        start, end = _month_bounds(_parse_month(month))
        statement = statement.where(Expense.expense_date >= start, Expense.expense_date <= end)
    statement = statement.order_by(Expense.expense_date.desc(), Expense.created_at.desc())

    return session.exec(statement).all()


@router.get(
    "/summary",
    response_model=MonthSummary,
)
def month_summary(
    month: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Totales del mes agrupados por categoría, de mayor a menor."""
    marker = _parse_month(month)
    start, end = _month_bounds(marker)
    total_col = func.sum(Expense.amount)
    rows = session.exec(
        select(Expense.category_id, Category.name, total_col, func.count(Expense.id))
        .join(Category, Category.id == Expense.category_id, isouter=True)
        .where(
            Expense.user_id == current_user.id,
            Expense.deleted_at.is_(None),
            Expense.expense_date >= start,
            Expense.expense_date <= end,
        )
        .group_by(Expense.category_id, Category.name)
        .order_by(total_col.desc())
    ).all()

    totals = [
        CategoryTotal(category_id=cid, name=name, total=round(total or 0, 2), count=count)
        for cid, name, total, count in rows
    ]
    return MonthSummary(
        month=str(marker),
        total=round(sum(t.total for t in totals), 2),
        categories=totals,
    )


@router.get(
    "/{expense_id}",
    response_model=ExpenseRead,
)
def get_expense(
    expense_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Obtener un gasto por ID del usuario autenticado (si no está soft-deleted)."""
    return _get_owned_expense(session, current_user, expense_id)


@router.patch(
    "/{expense_id}",
    response_model=ExpenseRead,
)
def update_expense(
    expense_id: uuid.UUID,
    expense_in: ExpenseUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Actualizar parcialmente un gasto del usuario autenticado."""
    expense = _get_owned_expense(session, current_user, expense_id)

    changes = expense_in.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )
    if "category_id" in changes:
        _check_category(session, current_user, changes["category_id"])

    for field, value in changes.items():
        setattr(expense, field, value)
    expense.updated_at = datetime.now(timezone.utc)
    session.add(expense)
    session.commit()
    session.refresh(expense)
    return expense


@router.delete(
    "/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_expense(
    expense_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Soft delete del gasto del usuario autenticado:
    - En vez de borrar el registro, marca deleted_at.
    """
    expense = _get_owned_expense(session, current_user, expense_id)

    expense.deleted_at = datetime.now(timezone.utc)
    expense.updated_at = datetime.now(timezone.utc)

    session.add(expense)
    session.commit()
    return
