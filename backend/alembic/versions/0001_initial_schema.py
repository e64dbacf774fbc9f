"""Initial leave engine schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _days(name: str) -> sa.Column:
    return sa.Column(name, sa.Float(), server_default="0", nullable=False)


def upgrade() -> None:
    op.create_table(
        "company",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _timestamp("created_at"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("leave_policy_json", sa.JSON(), nullable=True),
    )

    op.create_table(
        "employee",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("joining_date", sa.Date(), nullable=True),
        _days("used_paid"),
        _days("used_casual"),
        _days("used_sick"),
        _days("used_unpaid"),
        _days("manual_adjustment"),
        sa.Column("last_accrued_year_month", sa.String(length=7), nullable=True),
        _days("total_leave_available"),
        _days("balance_paid"),
        _days("balance_casual"),
        _days("balance_sick"),
        _days("balance_unpaid"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
    )
    op.create_index("ix_employee_company_id", "employee", ["company_id"])

    op.create_table(
        "leave_request",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _timestamp("created_at"),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=20), server_default="PENDING", nullable=False),
        _days("alloc_paid"),
        _days("alloc_casual"),
        _days("alloc_sick"),
        _days("alloc_unpaid"),
    )
    op.create_index("ix_leave_request_company_id", "leave_request", ["company_id"])
    op.create_index("ix_leave_request_employee_id", "leave_request", ["employee_id"])
    op.create_index("ix_leave_request_status", "leave_request", ["status"])
    op.create_index("ix_leave_employee_status", "leave_request", ["company_id", "employee_id", "status"])
    op.create_index("ix_leave_range", "leave_request", ["start_date", "end_date"])

    op.create_table(
        "unpaid_leave_adjustment",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("month", sa.String(length=7), nullable=False),
        _days("deducted"),
        sa.Column("note", sa.String(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.UniqueConstraint("company_id", "employee_id", "month", name="uq_unpaid_adjustment_month"),
    )
    op.create_index("ix_unpaid_leave_adjustment_company_id", "unpaid_leave_adjustment", ["company_id"])
    op.create_index("ix_unpaid_leave_adjustment_employee_id", "unpaid_leave_adjustment", ["employee_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        _timestamp("created_at"),
    )
    op.create_index("ix_audit_log_company_id", "audit_log", ["company_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("unpaid_leave_adjustment")
    op.drop_table("leave_request")
    op.drop_table("employee")
    op.drop_table("company")
