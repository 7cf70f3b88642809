from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, and_
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from crm_api.models.base import Base, utcnow


class AccountORM(Base):
    """
    法人顧客

    - company_name_kana: 法人格（カブシキガイシャ等）を除いた読み（並び替え/検索用）
    - corporate_number: 法人番号（数字のみ）
    - postal_code: ハイフンなし7桁
    - industry: 業種マスタの name
    - deleted_at: 論理削除
    """

    __tablename__ = "accounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)

    company_name = Column(String(255), nullable=False, index=True)
    company_name_kana = Column(String(255), nullable=True, index=True)
    corporate_number = Column(String(13), nullable=True)

    main_phone = Column(String(32), nullable=True)
    fax = Column(String(32), nullable=True)

    postal_code = Column(String(7), nullable=True)
    prefecture = Column(String(16), nullable=True)
    city = Column(String(64), nullable=True)
    street = Column(String(255), nullable=True)
    building = Column(String(255), nullable=True)

    industry = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # 読み取り専用（論理削除済みを除外）
    contacts = relationship(
        "ContactORM",
        primaryjoin=lambda: and_(
            AccountORM.id == ContactORM.account_id,
            ContactORM.deleted_at.is_(None),
        ),
        order_by=lambda: [ContactORM.is_primary.desc(), ContactORM.last_name],
        viewonly=True,
        lazy="selectin",
    )
    branches = relationship(
        "BranchORM",
        primaryjoin=lambda: and_(
            AccountORM.id == BranchORM.account_id,
            BranchORM.deleted_at.is_(None),
        ),
        order_by=lambda: [BranchORM.created_at, BranchORM.name],
        viewonly=True,
        lazy="selectin",
    )


class BranchORM(Base):
    """支店（1つの法人にのみ属する）"""

    __tablename__ = "branches"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)

    account_id = Column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    fax = Column(String(32), nullable=True)

    postal_code = Column(String(7), nullable=True)
    prefecture = Column(String(16), nullable=True)
    city = Column(String(64), nullable=True)
    street = Column(String(255), nullable=True)
    building = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class ContactORM(Base):
    """法人の担当者（is_primary は法人ごとに高々1件）"""

    __tablename__ = "contacts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)

    account_id = Column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    branch_id = Column(
        UUID(as_uuid=True),
        ForeignKey("branches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    last_name = Column(String(64), nullable=False)
    first_name = Column(String(64), nullable=False)
    last_name_kana = Column(String(64), nullable=True)
    first_name_kana = Column(String(64), nullable=True)

    phone = Column(String(32), nullable=True)
    email = Column(String(255), nullable=True)
    department = Column(String(128), nullable=True)
    position = Column(String(128), nullable=True)

    is_primary = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_contacts_account_primary", "account_id", "is_primary"),
    )
