# plantnet/config.py
from __future__ import annotations

import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env locally (safe in prod too)
load_dotenv()


def _split_csv(raw: str) -> List[str]:
    return [x.strip() for x in (raw or "").split(",") if x.strip()]


# -------------------
# Config (env-driven)
# -------------------
class Settings(BaseModel):
    app_env: str = os.getenv("APP_ENV", "development").strip().lower()
    port: int = int(os.getenv("PORT", "4000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    cors_origins: List[str] = _split_csv(
        os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:5174")
    )

    mail_host: str = os.getenv("MAIL_HOST", "smtp.gmail.com")
    mail_port: int = int(os.getenv("MAIL_PORT", "587"))
    mail_user: str = os.getenv("MAIL_USER", "").strip()
    mail_pass: str = os.getenv("MAIL_PASS", "").strip()

    @property
    def production(self) -> bool:
        return self.app_env == "production"


settings = Settings()
