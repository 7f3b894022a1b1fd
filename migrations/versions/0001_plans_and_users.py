"""plans and users

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "plans",
        sa.Column("plan_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("total_requests", sa.Integer(), nullable=False),
        sa.CheckConstraint("total_requests >= 0", name=op.f("ck_plans_total_requests_non_negative")),
        sa.PrimaryKeyConstraint("plan_id", name=op.f("pk_plans")),
    )
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), autoincrement=False, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("plan_id", sa.Integer(), nullable=False),
        sa.Column("used_requests", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("reset_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("used_requests >= 0", name=op.f("ck_users_used_requests_non_negative")),
        sa.ForeignKeyConstraint(["plan_id"], ["plans.plan_id"], name=op.f("fk_users_plan_id_plans")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    )
    op.create_index("idx_users_plan", "users", ["plan_id"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_users_plan", table_name="users")
    op.drop_table("users")
    op.drop_table("plans")
