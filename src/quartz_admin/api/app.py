"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quartz_admin.config import Settings, get_settings
from quartz_admin.core.service import QuartzService
from quartz_admin.core.store import QuartzStore
from quartz_admin.errors import AmbiguousResult, DataAccessError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    yield
    # Shutdown
    service = app.state.service
    if service is not None:
        service.store.engine.dispose()


def create_app(settings: Settings | None = None, service: QuartzService | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.getLogger("quartz_admin").setLevel(settings.log_level.upper())

    app = FastAPI(
        title="Quartz Admin API",
        description="Inspect and clean up Quartz scheduler tables",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if service is None and settings.is_configured:
        service = QuartzService(QuartzStore.from_settings(settings))
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from quartz_admin.api.routers import quartz

    app.include_router(quartz.router, prefix="/api/quartz", tags=["quartz"])

    @app.exception_handler(DataAccessError)
    async def data_access_handler(request: Request, exc: DataAccessError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=500, content={"detail": exc.message})

    @app.exception_handler(AmbiguousResult)
    async def ambiguous_handler(request: Request, exc: AmbiguousResult):
        return JSONResponse(status_code=409, content={"detail": str(exc), "matches": exc.matches})

    @app.get("/health")
    def health():
        result = {"status": "ok", "service": "quartz-admin-api", "db": "not configured"}
        if app.state.service is not None:
            try:
                app.state.service.store.ping()
                result["db"] = "connected"
            except DataAccessError as exc:
                logger.warning("Health check failed: %s", exc.message)
                result["db"] = "disconnected"
                result["status"] = "degraded"
        return result

    return app
