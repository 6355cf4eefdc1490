"""initial schema: users, auth tokens, customers, jobs, settings

Revision ID: 5c1f0e7a9b2d
Revises:
Create Date: 2026-10-17 09:30:12.118204

Tables are created only if missing, so databases first built by
Base.metadata.create_all() can be brought under Alembic safely.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5c1f0e7a9b2d'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JOB_STATUSES = ("draft", "quoting", "quoted", "accepted", "in_progress", "complete", "invoiced", "paid")


def _table_exists(table_name):
    """Check if a table exists."""
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _table_exists("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("email", sa.String(), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("auth_tokens"):
        op.create_table(
            "auth_tokens",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("token_hash", sa.String(), nullable=False),
            sa.Column("token_type", sa.String(), nullable=True),
            sa.Column("expires_at", sa.DateTime(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("customers"):
        op.create_table(
            "customers",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, index=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("phone", sa.String(), nullable=True),
            sa.Column("email", sa.String(), nullable=True),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("jobs"):
        op.create_table(
            "jobs",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, index=True),
            sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False, index=True),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("status", sa.Enum(*[s.upper() for s in JOB_STATUSES], name="jobstatus"), nullable=False),
            sa.Column("job_address", sa.Text(), nullable=True),
            sa.Column("quote_date", sa.DateTime(), nullable=True),
            sa.Column("quote_valid_until", sa.DateTime(), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("end_date", sa.Date(), nullable=True),
            sa.Column("invoice_date", sa.Date(), nullable=True),
            sa.Column("paid_date", sa.Date(), nullable=True),
            sa.Column("materials_cost", sa.Float(), nullable=True),
            sa.Column("materials_notes", sa.Text(), nullable=True),
            sa.Column("labour_mode", sa.Enum("DAYS", "FIXED", name="labourmode"), nullable=True),
            sa.Column("labour_days", sa.Float(), nullable=True),
            sa.Column("labour_day_rate", sa.Float(), nullable=True),
            sa.Column("labour_cost", sa.Float(), nullable=True),
            sa.Column("other_costs", sa.Float(), nullable=True),
            sa.Column("other_costs_notes", sa.Text(), nullable=True),
            sa.Column("subtotal", sa.Float(), nullable=True),
            sa.Column("vat_amount", sa.Float(), nullable=True),
            sa.Column("total", sa.Float(), nullable=True),
            sa.Column("invoice_number", sa.Integer(), nullable=True),
            sa.Column("payment_reference", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )

    if not _table_exists("settings"):
        op.create_table(
            "settings",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, unique=True),
            sa.Column("business_name", sa.String(), nullable=True),
            sa.Column("contact_name", sa.String(), nullable=True),
            sa.Column("phone", sa.String(), nullable=True),
            sa.Column("email", sa.String(), nullable=True),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("logo_url", sa.String(), nullable=True),
            sa.Column("default_day_rate", sa.Float(), nullable=True),
            sa.Column("vat_registered", sa.Boolean(), nullable=False),
            sa.Column("vat_number", sa.String(), nullable=True),
            sa.Column("bank_details", sa.Text(), nullable=True),
            sa.Column("quote_message_template", sa.Text(), nullable=True),
            sa.Column("invoice_message_template", sa.Text(), nullable=True),
            sa.Column("default_quote_validity_days", sa.Integer(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )


def downgrade() -> None:
    for table in ("settings", "jobs", "customers", "auth_tokens", "users"):
        if _table_exists(table):
            op.drop_table(table)
