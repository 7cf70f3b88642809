from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crm_api.core.pagination import LimitQuery, OffsetQuery
from crm_api.db.session import get_db
from crm_api.models.individual_contact import IndividualContactORM
from crm_api.schemas.customer import IndividualContactDraft, IndividualContactOut
from crm_api.services.customer_records import validate_individual_contact, violations_payload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["individual-contacts"])

_FIELDS = (
    "last_name",
    "first_name",
    "last_name_kana",
    "first_name_kana",
    "birth_date",
    "phone",
    "email",
    "postal_code",
    "prefecture",
    "city",
    "street",
    "building",
    "notes",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _get_active(db: Session, contact_id: UUID) -> IndividualContactORM:
    row = db.get(IndividualContactORM, contact_id)
    if not row or row.deleted_at is not None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return row


def _validated(body: IndividualContactDraft) -> IndividualContactDraft:
    violations = validate_individual_contact(body)
    if violations:
        raise HTTPException(status_code=422, detail=violations_payload(violations))
    return body


def _commit(db: Session, row: IndividualContactORM, action: str) -> IndividualContactORM:
    try:
        db.commit()
        db.refresh(row)
        return row
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(
            status_code=400,
            detail=f"Integrity error: {str(getattr(e, 'orig', e))}",
        ) from None
    except Exception as e:
        db.rollback()
        logger.exception("%s failed", action)
        raise HTTPException(
            status_code=500,
            detail=f"{action} failed: {type(e).__name__}",
        ) from None


@router.get("/individual-contacts", response_model=List[IndividualContactOut])
def list_individual_contacts(
    limit: int = LimitQuery,
    offset: int = OffsetQuery,
    db: Session = Depends(get_db),
):
    stmt = (
        select(IndividualContactORM)
        .where(IndividualContactORM.deleted_at.is_(None))
        .order_by(
            IndividualContactORM.last_name_kana.asc().nulls_last(),
            IndividualContactORM.first_name_kana.asc().nulls_last(),
            IndividualContactORM.last_name,
            IndividualContactORM.first_name,
        )
        .limit(limit)
        .offset(offset)
    )
    return db.execute(stmt).scalars().all()


@router.get("/individual-contacts/{contact_id}", response_model=IndividualContactOut)
def get_individual_contact(contact_id: UUID, db: Session = Depends(get_db)):
    return _get_active(db, contact_id)


@router.post("/individual-contacts", response_model=IndividualContactOut)
def create_individual_contact(body: IndividualContactDraft, db: Session = Depends(get_db)):
    draft = _validated(body)
    now = _utcnow()

    row = IndividualContactORM(id=uuid4(), created_at=now, updated_at=now)
    for k in _FIELDS:
        setattr(row, k, getattr(draft, k))

    db.add(row)
    return _commit(db, row, "create_individual_contact")


@router.put("/individual-contacts/{contact_id}", response_model=IndividualContactOut)
def update_individual_contact(contact_id: UUID, body: IndividualContactDraft, db: Session = Depends(get_db)):
    row = _get_active(db, contact_id)
    draft = _validated(body)

    # フォームは全項目を送る前提（空欄は null で上書き）
    for k in _FIELDS:
        setattr(row, k, getattr(draft, k))
    row.updated_at = _utcnow()

    return _commit(db, row, "update_individual_contact")


@router.delete("/individual-contacts/{contact_id}")
def delete_individual_contact(contact_id: UUID, db: Session = Depends(get_db)):
    row = _get_active(db, contact_id)
    row.deleted_at = _utcnow()
    _commit(db, row, "delete_individual_contact")
    return {"deleted": True}
