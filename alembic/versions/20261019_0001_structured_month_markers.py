"""structured month markers on fixed_expenses

Revision ID: 20261019_0001
Revises: 
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

from gastos_hormigas.core.months import MonthMarker


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.alter_column(
        "fixed_expenses",
        "last_posted_month",
        new_column_name="last_posted_marker",
        schema="public",
    )
    op.add_column(
        "fixed_expenses",
        sa.Column("last_posted_year", sa.Integer(), nullable=True),
        schema="public",
    )
    op.add_column(
        "fixed_expenses",
        sa.Column("last_posted_month", sa.Integer(), nullable=True),
        schema="public",
    )

    conn = op.get_bind()
    rows = conn.execute(
        sa.text(
            "SELECT id, last_posted_marker FROM public.fixed_expenses "
            "WHERE last_posted_marker IS NOT NULL"
        )
    ).fetchall()
    for row_id, legacy in rows:
        try:
            marker = MonthMarker.from_legacy(legacy)
        except ValueError:
            # unreadable marker: left empty, the next run posts again
            continue
        conn.execute(
            sa.text(
                "UPDATE public.fixed_expenses "
                "SET last_posted_year = :year, last_posted_month = :month WHERE id = :id"
            ),
            {"year": marker.year, "month": marker.month, "id": row_id},
        )

    op.create_check_constraint(
        "fixed_expenses_last_posted_month_check",
        "fixed_expenses",
        "last_posted_month between 1 and 12",
        schema="public",
    )
    op.drop_column("fixed_expenses", "last_posted_marker", schema="public")


def downgrade() -> None:
    op.add_column(
        "fixed_expenses",
        sa.Column("last_posted_marker", sa.Text(), nullable=True),
        schema="public",
    )
    op.execute(
        "UPDATE public.fixed_expenses "
        "SET last_posted_marker = last_posted_year || '-' || (last_posted_month - 1) "
        "WHERE last_posted_year IS NOT NULL AND last_posted_month IS NOT NULL"
    )
    op.drop_constraint(
        "fixed_expenses_last_posted_month_check",
        "fixed_expenses",
        type_="check",
        schema="public",
    )
    op.drop_column("fixed_expenses", "last_posted_month", schema="public")
    op.drop_column("fixed_expenses", "last_posted_year", schema="public")
    op.alter_column(
        "fixed_expenses",
        "last_posted_marker",
        new_column_name="last_posted_month",
        schema="public",
    )
