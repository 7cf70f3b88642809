from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

PrimaryContactState = Literal["none", "set", "unset"]

# 〒 / ハイフン類 / 空白
_POSTAL_NOISE_RE = re.compile(r"[〒\-−ー‐-―﹣－\s]")


def normalize_postal_code(value: Optional[str]) -> Optional[str]:
    """
    入力された郵便番号を 7 桁（区切りなし）に寄せる。
    空なら None。7 桁にならない入力は記号除去後の値を返し、検証側で弾く。
    """
    if value is None:
        return None
    text = unicodedata.normalize("NFKC", str(value)).strip()
    if not text:
        return None
    compact = _POSTAL_NOISE_RE.sub("", text)
    if re.fullmatch(r"[0-9]{7}", compact):
        return compact
    return text


# ============================================================
# drafts (入力フォームの状態。必須チェックは services.customer_records で行う)
# ============================================================

class DraftModel(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def strip_blank(cls, v: Any, info: ValidationInfo) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            if info.field_name == "postal_code":
                return normalize_postal_code(v)
            if info.field_name == "corporate_number":
                return unicodedata.normalize("NFKC", v)
        return v


class AddressDraft(DraftModel):
    postal_code: Optional[str] = None
    prefecture: Optional[str] = Field(default=None, max_length=16)
    city: Optional[str] = Field(default=None, max_length=64)
    street: Optional[str] = Field(default=None, max_length=255)
    building: Optional[str] = Field(default=None, max_length=255)


class BranchDraft(AddressDraft):
    # 既存支店は UUID、新規は一時キー（例: "temp-1"）
    id: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    fax: Optional[str] = Field(default=None, max_length=32)


class ContactDraft(DraftModel):
    id: Optional[str] = None
    last_name: Optional[str] = Field(default=None, max_length=64)
    first_name: Optional[str] = Field(default=None, max_length=64)
    last_name_kana: Optional[str] = Field(default=None, max_length=64)
    first_name_kana: Optional[str] = Field(default=None, max_length=64)
    phone: Optional[str] = Field(default=None, max_length=32)
    email: Optional[str] = Field(default=None, max_length=255)
    department: Optional[str] = Field(default=None, max_length=128)
    position: Optional[str] = Field(default=None, max_length=128)
    is_primary: bool = False
    branch_id: Optional[str] = None


class AccountDraft(AddressDraft):
    company_name: Optional[str] = Field(default=None, max_length=255)
    company_name_kana: Optional[str] = Field(default=None, max_length=255)
    corporate_number: Optional[str] = None
    main_phone: Optional[str] = Field(default=None, max_length=32)
    fax: Optional[str] = Field(default=None, max_length=32)
    industry: Optional[str] = Field(default=None, max_length=64)
    notes: Optional[str] = None

    contacts: List[ContactDraft] = Field(default_factory=list)
    branches: List[BranchDraft] = Field(default_factory=list)


class IndividualContactDraft(AddressDraft):
    last_name: Optional[str] = Field(default=None, max_length=64)
    first_name: Optional[str] = Field(default=None, max_length=64)
    last_name_kana: Optional[str] = Field(default=None, max_length=64)
    first_name_kana: Optional[str] = Field(default=None, max_length=64)
    birth_date: Optional[date] = None
    phone: Optional[str] = Field(default=None, max_length=32)
    email: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None


# ============================================================
# outputs
# ============================================================

class BranchOut(BaseModel):
    id: UUID
    account_id: UUID
    name: str
    phone: Optional[str]
    fax: Optional[str]
    postal_code: Optional[str]
    prefecture: Optional[str]
    city: Optional[str]
    street: Optional[str]
    building: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class ContactOut(BaseModel):
    id: UUID
    account_id: UUID
    branch_id: Optional[UUID]
    last_name: str
    first_name: str
    last_name_kana: Optional[str]
    first_name_kana: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    department: Optional[str]
    position: Optional[str]
    is_primary: bool

    model_config = ConfigDict(from_attributes=True)


class AccountOut(BaseModel):
    id: UUID
    company_name: str
    company_name_kana: Optional[str]
    corporate_number: Optional[str]
    main_phone: Optional[str]
    fax: Optional[str]
    postal_code: Optional[str]
    prefecture: Optional[str]
    city: Optional[str]
    street: Optional[str]
    building: Optional[str]
    industry: Optional[str]
    notes: Optional[str]

    contacts: List[ContactOut] = Field(default_factory=list)
    branches: List[BranchOut] = Field(default_factory=list)

    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountSaveOut(AccountOut):
    primary_contact_state: PrimaryContactState


class IndividualContactOut(BaseModel):
    id: UUID
    last_name: str
    first_name: str
    last_name_kana: Optional[str]
    first_name_kana: Optional[str]
    birth_date: Optional[date]
    phone: Optional[str]
    email: Optional[str]
    postal_code: Optional[str]
    prefecture: Optional[str]
    city: Optional[str]
    street: Optional[str]
    building: Optional[str]
    notes: Optional[str]

    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class IndustryOut(BaseModel):
    id: UUID
    name: str
    sort_order: int

    model_config = ConfigDict(from_attributes=True)
