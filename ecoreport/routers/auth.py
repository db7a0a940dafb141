from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ecoreport.core.settings import settings
from ecoreport.db import get_db
from ecoreport.deps import get_current_user
from ecoreport.models.user import User
from ecoreport.services.security import create_token
from ecoreport.services.user_service import get_or_create_user


router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class LoginIn(BaseModel):
    email: EmailStr
    name: str = Field(default="", max_length=255)


def _user_out(user: User) -> dict:
    return {"id": user.id, "email": user.email, "name": user.name}


@router.post("/login")
async def login(payload: LoginIn, response: Response, db: AsyncSession = Depends(get_db)):
    # first login creates the user
    user = await get_or_create_user(db, payload.email, payload.name)
    token = create_token({"type": "user", "uid": user.id})
    response.set_cookie(settings.COOKIE_NAME, token, httponly=True, samesite="lax")
    return {"ok": True, "token": token, "user": _user_out(user)}


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(settings.COOKIE_NAME)
    return {"ok": True}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return _user_out(user)
