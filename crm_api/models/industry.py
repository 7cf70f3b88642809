from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from crm_api.models.base import Base, utcnow


class IndustryORM(Base):
    """業種マスタ（法人の industry は name を保持する）"""

    __tablename__ = "industries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    name = Column(String(64), nullable=False, unique=True)
    sort_order = Column(Integer, nullable=False, default=0, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
