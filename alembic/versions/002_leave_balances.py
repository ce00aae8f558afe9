"""Leave balances per employee, policy and year

Revision ID: 002_leave_balances
Revises: 001_initial_hr
Create Date: Allocated, used and carried-forward days

"""
from alembic import op  # type: ignore
import sqlalchemy as sa  # type: ignore


# revision identifiers, used by Alembic.
revision = "002_leave_balances"
down_revision = "001_initial_hr"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "leave_balances",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("employee_id", sa.Integer(),
                  sa.ForeignKey("employees.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False),
        sa.Column("policy_id", sa.Integer(),
                  sa.ForeignKey("leave_policies.id", ondelete="RESTRICT", onupdate="CASCADE"), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("allocated", sa.DECIMAL(5, 1), nullable=False),
        sa.Column("used", sa.DECIMAL(5, 1), nullable=False, server_default="0"),
        sa.Column("carry_forward", sa.DECIMAL(5, 1), nullable=False, server_default="0",
                  comment="Days brought over from the previous year"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("employee_id", "policy_id", "year", name="uq_leave_balances_employee_policy_year"),
    )
    op.create_index("idx_leave_balances_employee_id", "leave_balances", ["employee_id"])
    op.create_index("idx_leave_balances_year", "leave_balances", ["year"])


def downgrade() -> None:
    op.drop_table("leave_balances")
