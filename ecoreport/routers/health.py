from fastapi import APIRouter

from ecoreport.core.settings import settings

router = APIRouter(tags=["health"])


@router.get("/api/v1/health")
def health():
    return {"status": "ok", "app": settings.APP_NAME}
