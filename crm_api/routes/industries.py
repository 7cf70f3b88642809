from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from crm_api.db.session import get_db
from crm_api.models.industry import IndustryORM
from crm_api.schemas.customer import IndustryOut

router = APIRouter(tags=["industries"])


@router.get("/industries", response_model=List[IndustryOut])
def list_industries(db: Session = Depends(get_db)):
    stmt = select(IndustryORM).order_by(IndustryORM.sort_order, IndustryORM.name)
    return db.execute(stmt).scalars().all()
