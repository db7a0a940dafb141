from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from ecoreport.core.errors import NotFound
from ecoreport.models.notification import Notification


async def create_notification(db: AsyncSession, user_id: int, message: str, type: str) -> Notification:
    notification = Notification(user_id=user_id, message=message, type=type, is_read=False)
    db.add(notification)
    await db.flush()
    return notification


async def get_unread_notifications(db: AsyncSession, user_id: int) -> list[Notification]:
    rows = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list(rows.scalars().all())


async def mark_notification_as_read(db: AsyncSession, notification_id: int, user_id: int) -> None:
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFound("notification_not_found")
