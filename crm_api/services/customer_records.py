"""
顧客レコード（法人/担当者/支店/個人）の検証と入力中の状態操作

- validate_* は違反をリストで返す（例外にしない。画面で一括表示するため）
- 主担当は「保存前の事後チェック」で高々1件を確認する（編集中は0件もありうる）
- set_primary_contact / remove_contact / remove_branch / drop_blank_rows は
  入力フォームの操作を再現する純粋関数（新しい draft を返す）
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union
from uuid import UUID

from crm_api.schemas.customer import (
    AccountDraft,
    BranchDraft,
    ContactDraft,
    IndividualContactDraft,
    PrimaryContactState,
)

REQUIRED = "required"
INVALID_POSTAL_CODE = "invalid_postal_code"
INVALID_CORPORATE_NUMBER = "invalid_corporate_number"
DUPLICATE_PRIMARY = "duplicate_primary_contact"
UNKNOWN_BRANCH = "unknown_branch"

_POSTAL_CODE_RE = re.compile(r"[0-9]{7}")
_CORPORATE_NUMBER_RE = re.compile(r"[0-9]{1,13}")


def branch_key(raw: str) -> str:
    """支店キーの比較用。UUID として読める id は正規形（小文字）に、一時キーはそのまま"""
    try:
        return str(UUID(raw))
    except ValueError:
        return raw


@dataclass(frozen=True)
class Violation:
    field: str
    code: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def is_valid_postal_code(value: Optional[str]) -> bool:
    """None または ASCII 数字ちょうど7桁のみ許可"""
    if value is None:
        return True
    return isinstance(value, str) and _POSTAL_CODE_RE.fullmatch(value) is not None


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _path(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _check_postal_code(value: Optional[str], prefix: str) -> List[Violation]:
    if is_valid_postal_code(value):
        return []
    return [Violation(_path(prefix, "postal_code"), INVALID_POSTAL_CODE, "郵便番号は7桁の数字で入力してください")]


def _check_person_name(record: Union[ContactDraft, IndividualContactDraft], prefix: str) -> List[Violation]:
    out: List[Violation] = []
    if _blank(record.last_name):
        out.append(Violation(_path(prefix, "last_name"), REQUIRED, "姓は必須です"))
    if _blank(record.first_name):
        out.append(Violation(_path(prefix, "first_name"), REQUIRED, "名は必須です"))
    return out


# ============================================================
# validation
# ============================================================

def validate_branch(branch: BranchDraft, prefix: str = "") -> List[Violation]:
    out: List[Violation] = []
    if _blank(branch.name):
        out.append(Violation(_path(prefix, "name"), REQUIRED, "支店名は必須です"))
    out.extend(_check_postal_code(branch.postal_code, prefix))
    return out


def validate_contact(
    contact: ContactDraft,
    branch_ids: Optional[Set[str]] = None,
    prefix: str = "",
) -> List[Violation]:
    """branch_ids を渡すと、branch_id がその法人の支店を指しているかも確認する"""
    out = _check_person_name(contact, prefix)
    if branch_ids is not None and contact.branch_id is not None and branch_key(contact.branch_id) not in branch_ids:
        out.append(
            Violation(_path(prefix, "branch_id"), UNKNOWN_BRANCH, "所属支店がこの法人の支店ではありません")
        )
    return out


def validate_account(account: AccountDraft) -> List[Violation]:
    out: List[Violation] = []

    if _blank(account.company_name):
        out.append(Violation("company_name", REQUIRED, "会社名は必須です"))
    if account.corporate_number is not None and not _CORPORATE_NUMBER_RE.fullmatch(account.corporate_number):
        out.append(Violation("corporate_number", INVALID_CORPORATE_NUMBER, "法人番号は13桁以内の数字で入力してください"))
    out.extend(_check_postal_code(account.postal_code, ""))

    for i, branch in enumerate(account.branches):
        out.extend(validate_branch(branch, f"branches[{i}]"))

    branch_ids = {branch_key(b.id) for b in account.branches if b.id}
    for i, contact in enumerate(account.contacts):
        out.extend(validate_contact(contact, branch_ids, f"contacts[{i}]"))

    primaries = [i for i, c in enumerate(account.contacts) if c.is_primary]
    if len(primaries) > 1:
        for i in primaries[1:]:
            out.append(
                Violation(f"contacts[{i}].is_primary", DUPLICATE_PRIMARY, "主担当者は1名のみ指定できます")
            )

    return out


def validate_individual_contact(contact: IndividualContactDraft) -> List[Violation]:
    out = _check_person_name(contact, "")
    out.extend(_check_postal_code(contact.postal_code, ""))
    return out


def validate(record: Any) -> List[Violation]:
    """エンティティ種別に応じて検証する"""
    if isinstance(record, AccountDraft):
        return validate_account(record)
    if isinstance(record, IndividualContactDraft):
        return validate_individual_contact(record)
    if isinstance(record, BranchDraft):
        return validate_branch(record)
    if isinstance(record, ContactDraft):
        return validate_contact(record)
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def violations_payload(violations: Iterable[Violation]) -> Dict[str, List[Dict[str, str]]]:
    return {"violations": [v.to_dict() for v in violations]}


# ============================================================
# primary contact
# ============================================================

def primary_contact_state(contacts: Sequence[Any]) -> PrimaryContactState:
    if not contacts:
        return "none"
    if any(getattr(c, "is_primary", False) for c in contacts):
        return "set"
    return "unset"


def set_primary_contact(account: AccountDraft, index: int) -> AccountDraft:
    contacts = [c.model_copy(update={"is_primary": i == index}) for i, c in enumerate(account.contacts)]
    return account.model_copy(update={"contacts": contacts})


def remove_contact(account: AccountDraft, index: int) -> AccountDraft:
    removed = account.contacts[index]
    contacts = [c for i, c in enumerate(account.contacts) if i != index]
    # 主担当を消したら先頭を主担当に繰り上げる
    if removed.is_primary and contacts:
        contacts[0] = contacts[0].model_copy(update={"is_primary": True})
    return account.model_copy(update={"contacts": contacts})


# ============================================================
# branches
# ============================================================

def _clear_branch_refs(contacts: Iterable[ContactDraft], removed_ids: Set[str]) -> List[ContactDraft]:
    return [
        c.model_copy(update={"branch_id": None}) if c.branch_id in removed_ids else c
        for c in contacts
    ]


def remove_branch(account: AccountDraft, branch_id: str) -> AccountDraft:
    """支店を削除し、その支店を参照していた担当者の branch_id を外す"""
    branches = [b for b in account.branches if b.id != branch_id]
    contacts = _clear_branch_refs(account.contacts, {branch_id})
    return account.model_copy(update={"branches": branches, "contacts": contacts})


def drop_blank_rows(account: AccountDraft) -> AccountDraft:
    """保存前: 姓名とも空の担当者、支店名が空の支店を除外する"""
    contacts = [c for c in account.contacts if not (_blank(c.last_name) and _blank(c.first_name))]
    branches = [b for b in account.branches if not _blank(b.name)]
    dropped = {b.id for b in account.branches if _blank(b.name) and b.id}
    contacts = _clear_branch_refs(contacts, dropped)
    return account.model_copy(update={"contacts": contacts, "branches": branches})
