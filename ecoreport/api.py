import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ecoreport.core.errors import AppError
from ecoreport.core.settings import settings
from ecoreport.routers.health import router as health_router
from ecoreport.routers.auth import router as auth_router
from ecoreport.routers.reports import router as reports_router
from ecoreport.routers.collect import router as collect_router
from ecoreport.routers.rewards import router as rewards_router
from ecoreport.routers.notifications import router as notifications_router
from ecoreport.routers.places import router as places_router
from ecoreport.routers.track import router as track_router
from ecoreport.db import init_db

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=f"{settings.APP_NAME} - Waste Reporting & Rewards")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def _startup():
        await init_db()

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError):
        # the request's unit of work has already been rolled back
        logger.error("store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "operation_failed"})

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(reports_router)
    app.include_router(collect_router)
    app.include_router(rewards_router)
    app.include_router(notifications_router)
    app.include_router(places_router)
    app.include_router(track_router)

    return app
