# plantnet/auth.py
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Response
from jose import JWTError, jwt

from .config import settings

COOKIE_NAME = "token"


def _jwt_secret() -> str:
    return os.getenv("ACCESS_TOKEN_SECRET", "dev-secret-change-me")


def _jwt_alg() -> str:
    return os.getenv("JWT_ALG", "HS256")


def _jwt_expire_days() -> int:
    # default 365d
    raw = os.getenv("JWT_EXPIRE_DAYS", "365")
    try:
        return int(raw)
    except ValueError:
        return 365


def create_token(identity: Dict[str, Any]) -> str:
    """Sign the caller-supplied identity object, valid for JWT_EXPIRE_DAYS."""
    exp = datetime.now(timezone.utc) + timedelta(days=_jwt_expire_days())
    payload = {**identity, "exp": exp}
    return jwt.encode(payload, _jwt_secret(), algorithm=_jwt_alg())


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the embedded claims, or None when the signature is bad or the token expired."""
    try:
        return jwt.decode(token, _jwt_secret(), algorithms=[_jwt_alg()])
    except JWTError:
        return None


def _cookie_flags() -> Dict[str, Any]:
    if settings.production:
        return {"secure": True, "samesite": "none"}
    return {"secure": False, "samesite": "strict"}


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        max_age=60 * 60 * 24 * _jwt_expire_days(),
        **_cookie_flags(),
    )


def clear_session_cookie(response: Response) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value="",
        httponly=True,
        max_age=0,
        **_cookie_flags(),
    )
