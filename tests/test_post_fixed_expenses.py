"""
Publicación diaria de gastos fijos
"""
import uuid
from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import select

from gastos_hormigas.core.months import MonthMarker
from gastos_hormigas.jobs import post_fixed_expenses as job
from gastos_hormigas.models.category import Category
from gastos_hormigas.models.expense import Expense
from gastos_hormigas.models.fixed_expense import FixedExpense
from gastos_hormigas.services import categories as category_service


@pytest.fixture
def user_id(session, service):
    return service.sign_in_as_guest(session).principal.account_id


def _category(session, user_id, name):
    return session.exec(select(Category).where(Category.user_id == user_id, Category.name == name)).one()


def _fixed(session, user_id, category_id, day=15, last_posted=None, **extra):
    fixed = FixedExpense(
        user_id=user_id,
        description="Alquiler",
        amount=800.0,
        category_id=category_id,
        day_of_month=day,
        **extra,
    )
    if last_posted is not None:
        fixed.mark_posted(last_posted)
    session.add(fixed)
    session.commit()
    session.refresh(fixed)
    return fixed


def _expenses(session, user_id):
    session.expire_all()
    return session.exec(select(Expense).where(Expense.user_id == user_id)).all()


class TestDueLogic:
    def test_posts_once_when_due(self, engine, session, user_id):
        vivienda = _category(session, user_id, "Vivienda")
        fixed = _fixed(session, user_id, vivienda.id, last_posted=MonthMarker.from_legacy("2024-0"))

        report = job.post_fixed_expenses(engine, today=date(2024, 2, 20))

        assert report.expenses_posted == 1
        assert report.users_processed == 1
        assert report.failed_users == []
        [expense] = _expenses(session, user_id)
        assert expense.expense_date == date(2024, 2, 15)
        assert expense.amount == 800.0
        assert expense.category_id == vivienda.id
        assert expense.sub_category == "Gasto Fijo"
        assert expense.is_automatic
        session.refresh(fixed)
        assert fixed.last_posted == MonthMarker(2024, 2)

    def test_rerun_same_month_is_noop(self, engine, session, user_id):
        vivienda = _category(session, user_id, "Vivienda")
        _fixed(session, user_id, vivienda.id, last_posted=MonthMarker.from_legacy("2024-0"))

        job.post_fixed_expenses(engine, today=date(2024, 2, 20))
        report = job.post_fixed_expenses(engine, today=date(2024, 2, 21))

        assert report.expenses_posted == 0
        assert len(_expenses(session, user_id)) == 1

    def test_not_due_before_day(self, engine, session, user_id):
        vivienda = _category(session, user_id, "Vivienda")
        _fixed(session, user_id, vivienda.id)

        report = job.post_fixed_expenses(engine, today=date(2024, 2, 14))

        assert report.expenses_posted == 0
        assert _expenses(session, user_id) == []

    def test_never_posted_is_due(self, engine, session, user_id):
        vivienda = _category(session, user_id, "Vivienda")
        _fixed(session, user_id, vivienda.id, day=1)

        assert job.post_fixed_expenses(engine, today=date(2024, 3, 1)).expenses_posted == 1

    def test_inactive_is_skipped(self, engine, session, user_id):
        vivienda = _category(session, user_id, "Vivienda")
        _fixed(session, user_id, vivienda.id, is_active=False)

        assert job.post_fixed_expenses(engine, today=date(2024, 2, 20)).expenses_posted == 0

    def test_short_month_posts_on_last_day(self, engine, session, user_id):
        vivienda = _category(session, user_id, "Vivienda")
        _fixed(session, user_id, vivienda.id, day=31)

        assert job.post_fixed_expenses(engine, today=date(2024, 2, 28)).expenses_posted == 0
        assert job.post_fixed_expenses(engine, today=date(2024, 2, 29)).expenses_posted == 1
        [expense] = _expenses(session, user_id)
        assert expense.expense_date == date(2024, 2, 29)


class TestSubcategoryLabel:
    def test_first_subcategory_when_no_fixed_label(self, engine, session, user_id):
        salud = _category(session, user_id, "Salud")
        _fixed(session, user_id, salud.id)

        job.post_fixed_expenses(engine, today=date(2024, 2, 20))

        [expense] = _expenses(session, user_id)
        assert expense.sub_category == "Médico"

    def test_first_added_subcategory_wins_over_alphabetical(self, engine, session, user_id):
        mascotas = category_service.add_category(session, user_id, "Mascotas")
        category_service.add_subcategory(session, user_id, mascotas.id, "Zeta")
        category_service.add_subcategory(session, user_id, mascotas.id, "Alfa")
        _fixed(session, user_id, mascotas.id)

        job.post_fixed_expenses(engine, today=date(2024, 2, 20))

        [expense] = _expenses(session, user_id)
        assert expense.sub_category == "Zeta"

    def test_varios_when_category_has_no_subcategories(self, engine, session, user_id):
        empty = category_service.add_category(session, user_id, "Suscripciones")
        _fixed(session, user_id, empty.id)

        job.post_fixed_expenses(engine, today=date(2024, 2, 20))

        [expense] = _expenses(session, user_id)
        assert expense.sub_category == "Varios"

    def test_varios_when_category_was_deleted(self, engine, session, user_id):
        _fixed(session, user_id, uuid.uuid4())

        job.post_fixed_expenses(engine, today=date(2024, 2, 20))

        [expense] = _expenses(session, user_id)
        assert expense.sub_category == "Varios"


class TestIsolation:
    def test_failing_user_does_not_block_others(self, engine, session, service, monkeypatch):
        broken_user = service.sign_in_as_guest(session).principal.account_id
        healthy_user = service.sign_in_as_guest(session).principal.account_id
        broken_category = _category(session, broken_user, "Vivienda")
        broken_fixed = _fixed(session, broken_user, broken_category.id)
        _fixed(session, healthy_user, _category(session, healthy_user, "Vivienda").id)

        real_resolve = job.resolve_subcategory

        def flaky_resolve(db, category_id):
            if category_id == broken_category.id:
                raise OperationalError("SELECT", {}, Exception("database is locked"))
            return real_resolve(db, category_id)

        monkeypatch.setattr(job, "resolve_subcategory", flaky_resolve)

        report = job.post_fixed_expenses(engine, today=date(2024, 2, 20))

        assert report.failed_users == [broken_user]
        assert report.users_processed == 1
        assert report.expenses_posted == 1
        assert _expenses(session, broken_user) == []
        assert len(_expenses(session, healthy_user)) == 1
        session.refresh(broken_fixed)
        assert broken_fixed.last_posted is None

    def test_unexpected_error_does_not_block_others(self, engine, session, service, monkeypatch):
        broken_user = service.sign_in_as_guest(session).principal.account_id
        healthy_user = service.sign_in_as_guest(session).principal.account_id
        broken_category = _category(session, broken_user, "Vivienda")
        _fixed(session, broken_user, broken_category.id)
        _fixed(session, healthy_user, _category(session, healthy_user, "Vivienda").id)

        real_resolve = job.resolve_subcategory

        def flaky_resolve(db, category_id):
            if category_id == broken_category.id:
                raise ValueError("day is out of range for month")
            return real_resolve(db, category_id)

        monkeypatch.setattr(job, "resolve_subcategory", flaky_resolve)

        report = job.post_fixed_expenses(engine, today=date(2024, 2, 20))

        assert report.failed_users == [broken_user]
        assert report.expenses_posted == 1
        assert len(_expenses(session, healthy_user)) == 1


def test_day_of_month_is_checked_by_database(session, user_id):
    vivienda = _category(session, user_id, "Vivienda")
    session.add(
        FixedExpense(user_id=user_id, description="Roto", amount=1.0, category_id=vivienda.id, day_of_month=32)
    )
    with pytest.raises(IntegrityError):
        session.commit()
