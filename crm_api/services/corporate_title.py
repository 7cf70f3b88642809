# crm_api/services/corporate_title.py
# 会社名カナから法人格の読み（カブシキガイシャ等）を前後から取り除く。
# - 辞書は「宣言順」に照合する（長さ順に並べ替えない）
# - 空白入り表記は別エントリとして持つ

from __future__ import annotations

from typing import Tuple

CORPORATE_TITLE_KANA: Tuple[str, ...] = (
    "カブシキガイシャ",
    "カブシキ ガイシャ",
    "ユウゲンガイシャ",
    "ユウゲン ガイシャ",
    "ゴウドウガイシャ",
    "ゴウドウ ガイシャ",
    "ゴウシガイシャ",
    "ゴウシ ガイシャ",
    "ゴウメイガイシャ",
    "ゴウメイ ガイシャ",
    "トクテイヒエイリカツドウホウジン",
    "イッパンシャダンホウジン",
    "コウエキシャダンホウジン",
    "イッパンザイダンホウジン",
    "コウエキザイダンホウジン",
    "シャカイフクシホウジン",
    "ガッコウホウジン",
    "イリョウホウジン",
    "ノウジクミアイホウジン",
    "キョウドウクミアイ",
    "（カ）",
    "（ユ）",
    "（ド）",
    "(カ)",
    "(ユ)",
    "(ド)",
)


def _strip_once(value: str) -> Tuple[str, bool]:
    for title in CORPORATE_TITLE_KANA:
        if value.startswith(title):
            return value[len(title):].strip(), True
        if value.endswith(title):
            return value[: -len(title)].strip(), True
    return value, False


def strip_corporate_title(value: str) -> str:
    """
    法人格の読みを先頭・末尾から繰り返し除去した「中核名」を返す。

    例:
        "カブシキガイシャ測量社" -> "測量社"
        "測量社（カ）"           -> "測量社"
        "ソクリョウシャ"         -> "ソクリョウシャ"（前後の空白のみ除去）
    """
    result = (value or "").strip()
    changed = True
    while changed and result:
        result, changed = _strip_once(result)
    return result
