from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from jose import jwt, JWTError

from ecoreport.core.settings import settings


def create_token(payload: dict[str, Any]) -> str:
    data = dict(payload)
    data["exp"] = datetime.utcnow() + timedelta(days=settings.JWT_EXPIRE_DAYS)
    return jwt.encode(data, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_token(token: str) -> dict[str, Any] | None:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError:
        return None
