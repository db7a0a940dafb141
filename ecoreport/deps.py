from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ecoreport.core.settings import settings
from ecoreport.db import get_db
from ecoreport.services.security import decode_token
from ecoreport.models.user import User


def _token_from(request: Request) -> str | None:
    # an explicit header wins over whatever cookie the client still holds
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
        if token:
            return token
    return request.cookies.get(settings.COOKIE_NAME) or None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    token = _token_from(request)
    if not token:
        raise HTTPException(status_code=401, detail="not_logged_in")
    payload = decode_token(token)
    if not payload or payload.get("type") != "user":
        raise HTTPException(status_code=401, detail="invalid_token")
    user_id = payload.get("uid")
    if not user_id:
        raise HTTPException(status_code=401, detail="invalid_token")
    user = await db.get(User, int(user_id))
    if not user:
        raise HTTPException(status_code=401, detail="user_not_found")
    return user
