from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ecoreport.db import get_db
from ecoreport.deps import get_current_user
from ecoreport.integrations.classifier import VerificationResult
from ecoreport.models.user import User
from ecoreport.routers.reports import report_out
from ecoreport.services.report_service import collect_report, get_waste_collection_tasks, update_task_status

router = APIRouter(prefix="/api/v1/collect", tags=["collect"])


class StatusIn(BaseModel):
    status: str


class CollectIn(BaseModel):
    verification: VerificationResult | None = None


@router.get("/tasks")
async def tasks(
    limit: int = Query(default=20, ge=1, le=100),
    status: str | None = None,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_waste_collection_tasks(db, limit=limit, status=status)


@router.patch("/tasks/{report_id}/status")
async def set_status(report_id: int, payload: StatusIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    report = await update_task_status(db, report_id, payload.status, user.id)
    return report_out(report)


@router.post("/tasks/{report_id}/collect")
async def collect(report_id: int, payload: CollectIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    result = await collect_report(
        db,
        report_id,
        user.id,
        verification=payload.verification.as_record() if payload.verification else None,
    )
    return {
        "report": report_out(result.report),
        "collection": {
            "id": result.collected.id,
            "status": result.collected.status,
            "collectionDate": result.collected.collection_date.isoformat(),
        },
        "balance": result.reward.points,
    }
