from __future__ import annotations

import uuid

from sqlalchemy import Column, Date, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID

from crm_api.models.base import Base, utcnow


class IndividualContactORM(Base):
    """個人顧客（法人/担当者/支店とは関連を持たない）"""

    __tablename__ = "individual_contacts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)

    last_name = Column(String(64), nullable=False)
    first_name = Column(String(64), nullable=False)
    last_name_kana = Column(String(64), nullable=True)
    first_name_kana = Column(String(64), nullable=True)

    birth_date = Column(Date, nullable=True)

    phone = Column(String(32), nullable=True)
    email = Column(String(255), nullable=True)

    postal_code = Column(String(7), nullable=True)
    prefecture = Column(String(16), nullable=True)
    city = Column(String(64), nullable=True)
    street = Column(String(255), nullable=True)
    building = Column(String(255), nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    __table_args__ = (
        Index("ix_individual_contacts_kana", "last_name_kana", "first_name_kana"),
    )
