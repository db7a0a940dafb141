from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ecoreport.db import get_db
from ecoreport.deps import get_current_user
from ecoreport.integrations.classifier import VerificationResult, classify_image
from ecoreport.models.report import Report
from ecoreport.models.user import User
from ecoreport.services.queries import get_recent_reports
from ecoreport.services.report_service import create_report

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


class VerifyIn(BaseModel):
    image: str = Field(min_length=1, description="data URL or bare base64")
    mime_type: str | None = None


class CreateReportIn(BaseModel):
    location: str = Field(min_length=1)
    waste_type: str = Field(min_length=1)
    amount: str = Field(min_length=1)
    image_url: str | None = None
    verification: VerificationResult | None = None


def report_out(r: Report) -> dict:
    return {
        "id": r.id,
        "userId": r.user_id,
        "location": r.location,
        "wasteType": r.waste_type,
        "amount": r.amount,
        "imageUrl": r.image_url,
        "verificationResult": r.verification_result,
        "status": r.status,
        "collectorId": r.collector_id,
        "createdAt": r.created_at.date().isoformat(),
    }


@router.post("/verify")
async def verify(payload: VerifyIn, _: User = Depends(get_current_user)):
    result = await classify_image(payload.image, payload.mime_type)
    return result.as_record()


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit(payload: CreateReportIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    report = await create_report(
        db,
        user.id,
        payload.location,
        payload.waste_type,
        payload.amount,
        image_url=payload.image_url,
        verification=payload.verification.as_record() if payload.verification else None,
    )
    return report_out(report)


@router.get("/recent")
async def recent(limit: int = Query(default=10, ge=1, le=100), db: AsyncSession = Depends(get_db)):
    return [report_out(r) for r in await get_recent_reports(db, limit)]
