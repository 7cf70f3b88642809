from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crm_api.core.pagination import LimitQuery, OffsetQuery
from crm_api.db.session import get_db
from crm_api.models.account import AccountORM, BranchORM, ContactORM
from crm_api.schemas.customer import AccountDraft, AccountOut, AccountSaveOut, BranchDraft
from crm_api.services.corporate_title import strip_corporate_title
from crm_api.services.customer_records import (
    branch_key,
    drop_blank_rows,
    primary_contact_state,
    validate_account,
    violations_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["accounts"])


# ============================================================
# utils
# ============================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _get_active_account(db: Session, account_id: UUID) -> AccountORM:
    account = db.get(AccountORM, account_id)
    if not account or account.deleted_at is not None:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


def _prepare(body: AccountDraft) -> AccountDraft:
    draft = drop_blank_rows(body)
    violations = validate_account(draft)
    if violations:
        raise HTTPException(status_code=422, detail=violations_payload(violations))
    return draft


def _apply_account_fields(account: AccountORM, draft: AccountDraft) -> None:
    account.company_name = draft.company_name
    # 法人格の読みは除いて保存する
    account.company_name_kana = strip_corporate_title(draft.company_name_kana or "") or None
    account.corporate_number = draft.corporate_number
    account.main_phone = draft.main_phone
    account.fax = draft.fax
    account.postal_code = draft.postal_code
    account.prefecture = draft.prefecture
    account.city = draft.city
    account.street = draft.street
    account.building = draft.building
    account.industry = draft.industry
    account.notes = draft.notes


def _apply_branch_fields(branch: BranchORM, draft: BranchDraft) -> None:
    branch.name = draft.name
    branch.phone = draft.phone
    branch.fax = draft.fax
    branch.postal_code = draft.postal_code
    branch.prefecture = draft.prefecture
    branch.city = draft.city
    branch.street = draft.street
    branch.building = draft.building


def _sync_branches(db: Session, account: AccountORM, draft: AccountDraft, now: datetime) -> Dict[str, UUID]:
    """
    支店を id 単位で反映する。
    戻り値: draft 上の支店キー -> 保存後の支店 UUID
    """
    existing = {
        str(b.id): b
        for b in db.execute(
            select(BranchORM).where(BranchORM.account_id == account.id, BranchORM.deleted_at.is_(None))
        ).scalars()
    }

    key_map: Dict[str, UUID] = {}
    for b in draft.branches:
        row = existing.pop(branch_key(b.id), None) if b.id else None
        if row is None:
            row = BranchORM(id=uuid4(), account_id=account.id, created_at=now)
            db.add(row)
        _apply_branch_fields(row, b)
        row.updated_at = now
        if b.id:
            key_map[branch_key(b.id)] = row.id

    # 送られてこなかった支店は論理削除し、参照している担当者の branch_id を外す
    removed_ids = [row.id for row in existing.values()]
    for row in existing.values():
        row.deleted_at = now
    if removed_ids:
        db.execute(
            update(ContactORM).where(ContactORM.branch_id.in_(removed_ids)).values(branch_id=None, updated_at=now)
        )

    # 担当者の branch_id より先に支店を INSERT しておく
    db.flush()
    return key_map


def _replace_contacts(
    db: Session,
    account: AccountORM,
    draft: AccountDraft,
    branch_map: Dict[str, UUID],
    now: datetime,
) -> None:
    # 既存の担当者を論理削除して作り直す
    db.execute(
        update(ContactORM)
        .where(ContactORM.account_id == account.id, ContactORM.deleted_at.is_(None))
        .values(deleted_at=now)
    )
    for c in draft.contacts:
        db.add(
            ContactORM(
                id=uuid4(),
                account_id=account.id,
                branch_id=branch_map.get(branch_key(c.branch_id)) if c.branch_id else None,
                last_name=c.last_name,
                first_name=c.first_name,
                last_name_kana=c.last_name_kana,
                first_name_kana=c.first_name_kana,
                phone=c.phone,
                email=c.email,
                department=c.department,
                position=c.position,
                is_primary=c.is_primary,
                created_at=now,
                updated_at=now,
            )
        )


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
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


def _saved(db: Session, account_id: UUID) -> AccountSaveOut:
    db.expire_all()
    account = _get_active_account(db, account_id)
    out = AccountOut.model_validate(account)
    return AccountSaveOut(**out.model_dump(), primary_contact_state=primary_contact_state(out.contacts))


# ============================================================
# list / get
# ============================================================

@router.get("/accounts", response_model=List[AccountOut])
def list_accounts(
    limit: int = LimitQuery,
    offset: int = OffsetQuery,
    db: Session = Depends(get_db),
):
    stmt = (
        select(AccountORM)
        .where(AccountORM.deleted_at.is_(None))
        .order_by(AccountORM.company_name_kana.asc().nulls_last(), AccountORM.company_name)
        .limit(limit)
        .offset(offset)
    )
    return db.execute(stmt).scalars().all()


@router.get("/accounts/{account_id}", response_model=AccountOut)
def get_account(account_id: UUID, db: Session = Depends(get_db)):
    return _get_active_account(db, account_id)


# ============================================================
# create / update
# ============================================================

@router.post("/accounts", response_model=AccountSaveOut)
def create_account(body: AccountDraft, db: Session = Depends(get_db)):
    draft = _prepare(body)
    now = _utcnow()

    account = AccountORM(id=uuid4(), created_at=now, updated_at=now)
    _apply_account_fields(account, draft)
    db.add(account)
    db.flush()

    branch_map = _sync_branches(db, account, draft, now)
    _replace_contacts(db, account, draft, branch_map, now)

    _commit(db, "create_account")
    return _saved(db, account.id)


@router.put("/accounts/{account_id}", response_model=AccountSaveOut)
def update_account(account_id: UUID, body: AccountDraft, db: Session = Depends(get_db)):
    account = _get_active_account(db, account_id)
    draft = _prepare(body)
    now = _utcnow()

    _apply_account_fields(account, draft)
    account.updated_at = now

    branch_map = _sync_branches(db, account, draft, now)
    _replace_contacts(db, account, draft, branch_map, now)

    _commit(db, "update_account")
    return _saved(db, account.id)


# ============================================================
# delete
# ============================================================

@router.delete("/accounts/{account_id}")
def delete_account(account_id: UUID, db: Session = Depends(get_db)):
    account = _get_active_account(db, account_id)
    now = _utcnow()

    # 論理削除（支店・担当者も連動）
    account.deleted_at = now
    branch_ids: List[UUID] = list(
        db.execute(
            select(BranchORM.id).where(BranchORM.account_id == account.id, BranchORM.deleted_at.is_(None))
        ).scalars()
    )
    if branch_ids:
        db.execute(update(ContactORM).where(ContactORM.branch_id.in_(branch_ids)).values(branch_id=None))
    db.execute(
        update(BranchORM)
        .where(BranchORM.account_id == account.id, BranchORM.deleted_at.is_(None))
        .values(deleted_at=now)
    )
    db.execute(
        update(ContactORM)
        .where(ContactORM.account_id == account.id, ContactORM.deleted_at.is_(None))
        .values(deleted_at=now)
    )

    _commit(db, "delete_account")
    return {"deleted": True}
