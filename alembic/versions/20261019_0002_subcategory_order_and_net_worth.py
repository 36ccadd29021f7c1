"""subcategory position, day_of_month check, assets and liabilities

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "subcategories",
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        schema="public",
    )
    # existing rows keep the order they were inserted in
    op.execute(
        "UPDATE public.subcategories AS s SET position = ordered.rn - 1 "
        "FROM (SELECT id, row_number() OVER (PARTITION BY category_id ORDER BY created_at, id) AS rn "
        "FROM public.subcategories) AS ordered WHERE s.id = ordered.id"
    )

    op.create_check_constraint(
        "fixed_expenses_day_of_month_check",
        "fixed_expenses",
        "day_of_month between 1 and 31",
        schema="public",
    )

    op.create_table(
        "assets",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("public.users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        schema="public",
    )
    op.create_index("ix_assets_user_id", "assets", ["user_id"], schema="public")

    op.create_table(
        "liabilities",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("public.users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("original_amount", sa.Float(), nullable=True),
        sa.Column("interest_rate", sa.Float(), nullable=True),
        sa.Column("monthly_payment", sa.Float(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("archived_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        schema="public",
    )
    op.create_index("ix_liabilities_user_id", "liabilities", ["user_id"], schema="public")


def downgrade() -> None:
    op.drop_index("ix_liabilities_user_id", table_name="liabilities", schema="public")
    op.drop_table("liabilities", schema="public")
    op.drop_index("ix_assets_user_id", table_name="assets", schema="public")
    op.drop_table("assets", schema="public")
    op.drop_constraint(
        "fixed_expenses_day_of_month_check",
        "fixed_expenses",
        type_="check",
        schema="public",
    )
    op.drop_column("subcategories", "position", schema="public")
