"""Reference Backend - FastAPI + In-memory Store + SSE Fan-out.

개발 및 통합 테스트용 레퍼런스 백엔드입니다.
- REST: /api 하위 리소스 CRUD
- SSE: /api/events/updates (변경 이벤트 + last_updated + heartbeat)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from raid_scheduler.backend.api import router as api_router
from raid_scheduler.backend.events import router as events_router
from raid_scheduler.backend.store import (
    BackendStore,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from raid_scheduler.metrics import register_metrics
from raid_scheduler.setup.config import Settings, get_settings

logger = logging.getLogger(__name__)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Exception Handlers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def register_exception_handlers(app: FastAPI) -> None:
    """예외 핸들러 등록."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content={"detail": str(exc), "code": "NOT_FOUND"},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=409,
            content={"detail": str(exc), "code": "CONFLICT"},
        )

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "code": "INVALID_REQUEST"},
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# App Factory
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """앱 생명주기 관리."""
    logger.info("backend_starting")
    yield
    logger.info("backend_stopped", extra={"subscribers": app.state.store.broadcaster.subscriber_count})


def create_app(store: BackendStore | None = None, settings: Settings | None = None) -> FastAPI:
    """레퍼런스 백엔드 앱 생성.

    Args:
        store: 주입할 저장소 (테스트용). None이면 빈 저장소
        settings: 설정. None이면 환경 변수 기반 설정
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Raid Scheduler Backend",
        description="Raid schedule reference backend with SSE updates",
        version=settings.service_version,
        lifespan=lifespan,
    )
    app.state.store = store or BackendStore()
    app.state.keepalive_interval = settings.sse_keepalive_interval

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_metrics(app)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(events_router, prefix="/api")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        """Liveness probe."""
        return {"status": "healthy", "service": settings.service_name}

    @app.get("/ready", tags=["Health"])
    async def ready() -> dict:
        """Readiness probe."""
        return {
            "status": "ready",
            "subscribers": app.state.store.broadcaster.subscriber_count,
        }

    return app
