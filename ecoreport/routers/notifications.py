from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ecoreport.db import get_db
from ecoreport.deps import get_current_user
from ecoreport.models.user import User
from ecoreport.services.notification_service import get_unread_notifications, mark_notification_as_read

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("")
async def unread(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    rows = await get_unread_notifications(db, user.id)
    return [
        {"id": n.id, "message": n.message, "type": n.type, "createdAt": n.created_at.isoformat()}
        for n in rows
    ]


@router.post("/{notification_id}/read")
async def mark_read(notification_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await mark_notification_as_read(db, notification_id, user.id)
    return {"ok": True}
