from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ecoreport.integrations.mailer import send_visit_alert

router = APIRouter(tags=["track"])


class VisitIn(BaseModel):
    url: str | None = None
    timestamp: str | None = None


@router.post("/api/track-visit")
async def track_visit(payload: VisitIn, background: BackgroundTasks):
    if not payload.url or not payload.timestamp:
        return JSONResponse(status_code=400, content={"message": "Missing required fields"})
    background.add_task(send_visit_alert, payload.url, payload.timestamp)
    return {"message": "Visit recorded"}
