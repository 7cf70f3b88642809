"""Create industries / accounts / branches / contacts / individual_contacts

Revision ID: 20261019_01_customers
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261019_01_customers"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(name: str) -> bool:
    bind = op.get_bind()
    insp = sa.inspect(bind)
    return insp.has_table(name)


def _address_columns() -> list:
    return [
        sa.Column("postal_code", sa.String(length=7), nullable=True),
        sa.Column("prefecture", sa.String(length=16), nullable=True),
        sa.Column("city", sa.String(length=64), nullable=True),
        sa.Column("street", sa.String(length=255), nullable=True),
        sa.Column("building", sa.String(length=255), nullable=True),
    ]


def _timestamps(soft_delete: bool = True) -> list:
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]
    if soft_delete:
        cols.append(sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True))
    return cols


def upgrade() -> None:
    # ------------------------------------------------------------
    # industries
    # ------------------------------------------------------------
    if not _table_exists("industries"):
        op.create_table(
            "industries",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=64), nullable=False, unique=True),
            sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
            *_timestamps(soft_delete=False),
        )
        op.create_index("ix_industries_sort_order", "industries", ["sort_order"])

    # ------------------------------------------------------------
    # accounts
    # ------------------------------------------------------------
    if not _table_exists("accounts"):
        op.create_table(
            "accounts",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("company_name", sa.String(length=255), nullable=False),
            sa.Column("company_name_kana", sa.String(length=255), nullable=True),
            sa.Column("corporate_number", sa.String(length=13), nullable=True),
            sa.Column("main_phone", sa.String(length=32), nullable=True),
            sa.Column("fax", sa.String(length=32), nullable=True),
            *_address_columns(),
            sa.Column("industry", sa.String(length=64), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_accounts_company_name", "accounts", ["company_name"])
        op.create_index("ix_accounts_company_name_kana", "accounts", ["company_name_kana"])
        op.create_index("ix_accounts_created_at", "accounts", ["created_at"])
        op.create_index("ix_accounts_deleted_at", "accounts", ["deleted_at"])

    # ------------------------------------------------------------
    # branches
    # ------------------------------------------------------------
    if not _table_exists("branches"):
        op.create_table(
            "branches",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("phone", sa.String(length=32), nullable=True),
            sa.Column("fax", sa.String(length=32), nullable=True),
            *_address_columns(),
            *_timestamps(),
            sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        )
        op.create_index("ix_branches_account_id", "branches", ["account_id"])

    # ------------------------------------------------------------
    # contacts（法人の担当者）
    # ------------------------------------------------------------
    if not _table_exists("contacts"):
        op.create_table(
            "contacts",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
            sa.Column("branch_id", postgresql.UUID(as_uuid=True), nullable=True),
            sa.Column("last_name", sa.String(length=64), nullable=False),
            sa.Column("first_name", sa.String(length=64), nullable=False),
            sa.Column("last_name_kana", sa.String(length=64), nullable=True),
            sa.Column("first_name_kana", sa.String(length=64), nullable=True),
            sa.Column("phone", sa.String(length=32), nullable=True),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("department", sa.String(length=128), nullable=True),
            sa.Column("position", sa.String(length=128), nullable=True),
            sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
            sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["branch_id"], ["branches.id"], ondelete="SET NULL"),
        )
        op.create_index("ix_contacts_account_id", "contacts", ["account_id"])
        op.create_index("ix_contacts_branch_id", "contacts", ["branch_id"])
        op.create_index("ix_contacts_account_primary", "contacts", ["account_id", "is_primary"])

    # ------------------------------------------------------------
    # individual_contacts（個人顧客）
    # ------------------------------------------------------------
    if not _table_exists("individual_contacts"):
        op.create_table(
            "individual_contacts",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("last_name", sa.String(length=64), nullable=False),
            sa.Column("first_name", sa.String(length=64), nullable=False),
            sa.Column("last_name_kana", sa.String(length=64), nullable=True),
            sa.Column("first_name_kana", sa.String(length=64), nullable=True),
            sa.Column("birth_date", sa.Date(), nullable=True),
            sa.Column("phone", sa.String(length=32), nullable=True),
            sa.Column("email", sa.String(length=255), nullable=True),
            *_address_columns(),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_individual_contacts_created_at", "individual_contacts", ["created_at"])
        op.create_index("ix_individual_contacts_deleted_at", "individual_contacts", ["deleted_at"])
        op.create_index("ix_individual_contacts_kana", "individual_contacts", ["last_name_kana", "first_name_kana"])


def downgrade() -> None:
    for name in ("individual_contacts", "contacts", "branches", "accounts", "industries"):
        if _table_exists(name):
            op.drop_table(name)
