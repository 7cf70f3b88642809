"""
Models package.

目的:
- Alembic / アプリ起動時に全モデルモジュールを import し、
  Base.metadata に確実にテーブル定義を登録する。
"""

from __future__ import annotations

# NOTE:
# import すること自体が目的（副作用で Base.metadata に登録される）なので noqa を付ける。

from crm_api.models import industry  # noqa: F401
from crm_api.models import account  # noqa: F401
from crm_api.models import individual_contact  # noqa: F401
