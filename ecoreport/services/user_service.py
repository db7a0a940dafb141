from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ecoreport.core.errors import ValidationFailure
from ecoreport.models.user import User

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValidationFailure("email_required")
    return email


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    return (await db.execute(select(User).where(User.email == _normalize_email(email)))).scalar_one_or_none()


async def create_user(db: AsyncSession, email: str, name: str) -> User:
    email = _normalize_email(email)
    if (await db.execute(select(User).where(User.email == email))).scalar_one_or_none():
        raise ValidationFailure("user_exists")
    user = User(email=email, name=(name or "").strip() or email.split("@")[0])
    db.add(user)
    await db.flush()
    logger.info("created user %s", user.id)
    return user


async def get_or_create_user(db: AsyncSession, email: str, name: str) -> User:
    user = await get_user_by_email(db, email)
    if user:
        return user
    return await create_user(db, email, name)
