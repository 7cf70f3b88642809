# crm_api/models/base.py

from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """
    すべてのSQLAlchemyモデルの共通Baseクラス
    Alembicがテーブルを検出するためにも必要
    """
    pass
