# crm_api/core/config.py
# - Reads env vars (and ".env" via python-dotenv / pydantic-settings).
# - The estimator credential is not a Settings field; read_estimator_api_key() reads os.environ per call.

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env を os.environ にも反映（資格情報は呼び出し時に os.environ から読む）
load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./app.db"
    FRONTEND_URL: Optional[str] = None
    RUN_CREATE_ALL: bool = False

    # 郵便番号推定（生成AI）
    POSTAL_ESTIMATOR_MODEL: str = "gpt-4o-mini"
    POSTAL_ESTIMATOR_MAX_TOKENS: int = 32
    POSTAL_ESTIMATOR_API_KEY_ENV: str = "OPENAI_API_KEY"

    # pydantic v2 config
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def sqlalchemy_database_url(self) -> str:
        url = self.DATABASE_URL
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url


settings = Settings()


def read_estimator_api_key() -> Optional[str]:
    """Credential for the postal-code estimator, read at call time (tolerates late configuration)."""
    v = os.getenv(settings.POSTAL_ESTIMATOR_API_KEY_ENV)
    if v is None:
        return None
    v = v.strip()
    return v or None
