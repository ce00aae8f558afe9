"""Initial HR schema: users, departments, positions, employees, leave, audit_logs

Revision ID: 001_initial_hr
Revises:
Create Date: Core HR tables plus the append-only audit trail

"""
from alembic import op  # type: ignore
import sqlalchemy as sa  # type: ignore


# revision identifiers, used by Alembic.
revision = "001_initial_hr"
down_revision = None
branch_labels = None
depends_on = None

ROLE = sa.Enum("ADMIN", "HR", "MANAGER", "EMPLOYEE", name="role")
AUDIT_ACTION = sa.Enum("CREATE", "READ", "UPDATE", "DELETE", name="auditaction")
EMPLOYMENT_STATUS = sa.Enum("ACTIVE", "INACTIVE", "TERMINATED", "ON_LEAVE", "PROBATION", name="employmentstatus")
EMPLOYMENT_TYPE = sa.Enum("FULL_TIME", "PART_TIME", "CONTRACT", "INTERN", "CONSULTANT", name="employmenttype")
GENDER = sa.Enum("MALE", "FEMALE", "OTHER", name="gender")
LEAVE_TYPE = sa.Enum("ANNUAL", "SICK", "MATERNITY", "PATERNITY", "EMERGENCY", "UNPAID", "SABBATICAL", name="leavetype")
LEAVE_STATUS = sa.Enum("PENDING", "APPROVED", "REJECTED", "CANCELLED", name="leaverequeststatus")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, comment="Login email"),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", ROLE, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_users_role", "users", ["role"])
    op.create_index("idx_users_is_active", "users", ["is_active"])

    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_departments_is_active", "departments", ["is_active"])

    op.create_table(
        "positions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("department_id", sa.Integer(),
                  sa.ForeignKey("departments.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True),
        sa.Column("level", sa.String(50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("min_salary", sa.DECIMAL(12, 2), nullable=True),
        sa.Column("max_salary", sa.DECIMAL(12, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("title", "department_id", name="uq_positions_title_department"),
    )
    op.create_index("idx_positions_department_id", "positions", ["department_id"])
    op.create_index("idx_positions_is_active", "positions", ["is_active"])

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("employee_id", sa.String(50), nullable=False, unique=True),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("middle_name", sa.String(50), nullable=True),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", GENDER, nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("zip_code", sa.String(20), nullable=True),
        sa.Column("department_id", sa.Integer(),
                  sa.ForeignKey("departments.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True),
        sa.Column("position_id", sa.Integer(),
                  sa.ForeignKey("positions.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True),
        sa.Column("manager_id", sa.Integer(),
                  sa.ForeignKey("employees.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True),
        sa.Column("user_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True, unique=True),
        sa.Column("employment_type", EMPLOYMENT_TYPE, nullable=False),
        sa.Column("employment_status", EMPLOYMENT_STATUS, nullable=False),
        sa.Column("hire_date", sa.Date(), nullable=False),
        sa.Column("termination_date", sa.Date(), nullable=True),
        sa.Column("base_salary", sa.DECIMAL(12, 2), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_employees_manager_id", "employees", ["manager_id"])
    op.create_index("idx_employees_department_id", "employees", ["department_id"])
    op.create_index("idx_employees_status", "employees", ["employment_status"])
    op.create_index("idx_employees_last_first", "employees", ["last_name", "first_name"])

    op.create_table(
        "leave_policies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("leave_type", LEAVE_TYPE, nullable=False),
        sa.Column("days_allowed", sa.DECIMAL(5, 1), nullable=False),
        sa.Column("carry_forward", sa.Boolean(), nullable=False),
        sa.Column("max_carry_forward", sa.DECIMAL(5, 1), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_leave_policies_type", "leave_policies", ["leave_type"])
    op.create_index("idx_leave_policies_is_active", "leave_policies", ["is_active"])

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("employee_id", sa.Integer(),
                  sa.ForeignKey("employees.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False),
        sa.Column("policy_id", sa.Integer(),
                  sa.ForeignKey("leave_policies.id", ondelete="RESTRICT", onupdate="CASCADE"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days", sa.DECIMAL(5, 1), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", LEAVE_STATUS, nullable=False),
        sa.Column("reviewed_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("review_comment", sa.Text(), nullable=True),
        sa.Column("applied_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("idx_leave_requests_employee_id", "leave_requests", ["employee_id"])
    op.create_index("idx_leave_requests_policy_status", "leave_requests", ["policy_id", "status"])
    op.create_index("idx_leave_requests_dates", "leave_requests", ["start_date", "end_date"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_user_id", sa.Integer(),
                  sa.ForeignKey("users.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True),
        sa.Column("actor_email", sa.String(255), nullable=True, comment="Email of actor at time of action"),
        sa.Column("actor_role", ROLE, nullable=True, comment="Role of actor at time of action"),
        sa.Column("actor_employee_id", sa.Integer(), nullable=True),
        sa.Column("action", AUDIT_ACTION, nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("before_state", sa.JSON(), nullable=True),
        sa.Column("after_state", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("request_method", sa.String(10), nullable=True),
        sa.Column("request_path", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("idx_audit_logs_actor", "audit_logs", ["actor_user_id"])
    op.create_index("idx_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])
    op.create_index("idx_audit_logs_created_at", "audit_logs", ["created_at"])
    op.create_index("idx_audit_logs_created_action", "audit_logs", ["created_at", "action"])


def downgrade() -> None:
    for table in ("audit_logs", "leave_requests", "leave_policies", "employees", "positions", "departments", "users"):
        op.drop_table(table)
