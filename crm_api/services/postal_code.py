# crm_api/services/postal_code.py
# 住所の断片から郵便番号を推定する（生成AIによる参考値）。
#
# - 生成AIは text-in/text-out の TextCompleter として扱う（テストではスタブに差し替え）
# - 資格情報は呼び出しのたびに環境変数から読む
# - どの失敗も例外にせず、confidence="low" の結果として返す
# - プロンプト本文や生の応答は結果にもログにも含めない

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Callable, Literal, Optional, Protocol

from openai import OpenAI
from pydantic import BaseModel

from crm_api.core.config import read_estimator_api_key, settings

logger = logging.getLogger(__name__)

Confidence = Literal["high", "medium", "low"]
ErrorKind = Literal["validation", "configuration", "estimation"]

UNKNOWN_SENTINEL = "不明"

MSG_REQUIRED = "都道府県と市区町村を入力してください"
MSG_NOT_CONFIGURED = "郵便番号推定のAPIキーが設定されていません"
MSG_NOT_FOUND = "郵便番号を特定できませんでした"
MSG_CALL_FAILED = "郵便番号の推定に失敗しました"


class PostalCodeEstimate(BaseModel):
    postal_code: Optional[str] = None
    confidence: Confidence = "low"
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


class TextCompleter(Protocol):
    def complete(self, prompt: str, max_tokens: int) -> str: ...


class OpenAICompleter:
    """OpenAI Chat Completions を 1 往復だけ呼ぶ TextCompleter"""

    def __init__(self, api_key: str, model: Optional[str] = None) -> None:
        self._client = OpenAI(api_key=api_key, max_retries=0)
        self._model = model or settings.POSTAL_ESTIMATOR_MODEL

    def complete(self, prompt: str, max_tokens: int) -> str:
        resp = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=0,
        )
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""


# ============================================================
# Reply parsing
# ============================================================
_SEVEN_DIGITS_RE = re.compile(r"(?<![0-9])([0-9]{7})(?![0-9])")
# 3桁 + 区切り(ハイフン類/半角・全角スペース) + 4桁
_SPLIT_DIGITS_RE = re.compile(r"(?<![0-9])([0-9]{3})[-−ー‐-―﹣－ \u3000]([0-9]{4})(?![0-9])")


def extract_postal_code(reply: str) -> Optional[str]:
    """応答テキストから 7 桁の郵便番号を取り出す。見つからなければ None。"""
    if not reply:
        return None
    # 全角数字・全角ハイフンを半角に寄せる
    text = unicodedata.normalize("NFKC", reply)

    m = _SEVEN_DIGITS_RE.search(text)
    if m:
        return m.group(1)

    m = _SPLIT_DIGITS_RE.search(text)
    if m:
        return m.group(1) + m.group(2)

    return None


def build_prompt(address: str, company_name: Optional[str] = None) -> str:
    lines = [
        "次の日本の住所の郵便番号（7桁の数字）を推定してください。",
        f"住所: {address}",
    ]
    if company_name:
        lines.append(f"会社名: {company_name}")
    lines.append(
        f"回答はハイフンなしの7桁の数字のみを返してください。特定できない場合は「{UNKNOWN_SENTINEL}」とだけ返してください。"
    )
    return "\n".join(lines)


def _low(error: str, kind: ErrorKind) -> PostalCodeEstimate:
    return PostalCodeEstimate(postal_code=None, confidence="low", error=error, error_kind=kind)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


# ============================================================
# Estimator
# ============================================================
class PostalCodeEstimator:
    """
    都道府県・市区町村（必須）と番地・会社名（任意）から郵便番号を推定する。

    completer_factory: 資格情報を受け取り TextCompleter を返す（既定は OpenAI）
    credential: 呼び出し時に資格情報を返す関数（既定は環境変数）
    """

    def __init__(
        self,
        completer_factory: Optional[Callable[[str], TextCompleter]] = None,
        credential: Callable[[], Optional[str]] = read_estimator_api_key,
        max_tokens: Optional[int] = None,
    ) -> None:
        self._completer_factory = completer_factory or OpenAICompleter
        self._credential = credential
        self._max_tokens = max_tokens or settings.POSTAL_ESTIMATOR_MAX_TOKENS

    def estimate(
        self,
        prefecture: Optional[str],
        city: Optional[str],
        street: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> PostalCodeEstimate:
        prefecture = _clean(prefecture)
        city = _clean(city)
        street = _clean(street)
        company_name = _clean(company_name)

        if not prefecture or not city:
            return _low(MSG_REQUIRED, "validation")

        try:
            api_key = self._credential()
        except Exception:
            logger.exception("Postal code estimator credential lookup failed")
            return _low(MSG_NOT_CONFIGURED, "configuration")
        if not api_key:
            logger.warning("Postal code estimator is not configured (no API key).")
            return _low(MSG_NOT_CONFIGURED, "configuration")

        # 日本の住所は区切りなしで連結する
        address = "".join(p for p in (prefecture, city, street) if p)
        prompt = build_prompt(address, company_name or None)

        try:
            completer = self._completer_factory(api_key)
            reply = completer.complete(prompt, self._max_tokens)
        except Exception as e:
            logger.exception("Postal code estimation call failed")
            return _low(f"{MSG_CALL_FAILED}（{type(e).__name__}）", "estimation")

        postal_code = extract_postal_code(reply or "")
        if postal_code is None:
            logger.warning("Postal code estimator returned no 7-digit code.")
            return _low(MSG_NOT_FOUND, "estimation")

        logger.info("Estimated postal code %s", postal_code)
        # 推定値なので high にはしない
        return PostalCodeEstimate(postal_code=postal_code, confidence="medium")


def estimate_postal_code(
    prefecture: Optional[str],
    city: Optional[str],
    street: Optional[str] = None,
    company_name: Optional[str] = None,
) -> PostalCodeEstimate:
    return PostalCodeEstimator().estimate(prefecture, city, street, company_name)
