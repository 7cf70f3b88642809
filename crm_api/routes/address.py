from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from crm_api.services.corporate_title import strip_corporate_title
from crm_api.services.postal_code import PostalCodeEstimate, PostalCodeEstimator

router = APIRouter(prefix="/address", tags=["address"])


class PostalCodeEstimateIn(BaseModel):
    # 長さは制限しない（住所をまとめて貼り付けても推定結果として返す）
    prefecture: Optional[str] = None
    city: Optional[str] = None
    street: Optional[str] = None
    company_name: Optional[str] = None


class CorporateTitleIn(BaseModel):
    value: str = Field(default="", max_length=255)


class CorporateTitleOut(BaseModel):
    value: str
    core_name: str


def get_postal_code_estimator() -> PostalCodeEstimator:
    return PostalCodeEstimator()


@router.post("/postal-code/estimate", response_model=PostalCodeEstimate)
def estimate_postal_code(
    body: PostalCodeEstimateIn,
    estimator: PostalCodeEstimator = Depends(get_postal_code_estimator),
):
    """推定値は参考値。画面で確認してから反映する（失敗しても 200 で low を返す）"""
    return estimator.estimate(body.prefecture, body.city, body.street, body.company_name)


@router.post("/kana/strip-corporate-title", response_model=CorporateTitleOut)
def strip_corporate_title_kana(body: CorporateTitleIn):
    return CorporateTitleOut(value=body.value, core_name=strip_corporate_title(body.value))
