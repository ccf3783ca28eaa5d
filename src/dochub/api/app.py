"""FastAPI app factory con lifespan que indexa el corpus y arranca el auto-refresh."""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from dochub import __version__
from dochub.config import get_settings
from dochub.refresh import AutoRefresher
from dochub.service import KnowledgeHub

logger = structlog.get_logger(__name__)

# Paths de sondeo que se loguean en debug para no ensuciar el log.
QUIET_PATHS = frozenset({"/health"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Construye el hub e indexa al arrancar; detiene el refresh y cierra al parar."""
    settings = get_settings()
    hub = KnowledgeHub.from_settings(settings)
    await hub.initialize_corpus()

    refresher = AutoRefresher(hub, interval=settings.refresh_interval_seconds)
    if settings.auto_refresh:
        refresher.start()

    app.state.hub = hub
    app.state.settings = settings
    logger.info("app_started", version=__version__, documents=len(hub.index))
    try:
        yield
    finally:
        await refresher.stop()
        await hub.aclose()
        logger.info("app_stopped")


async def request_logging(request: Request, call_next) -> Response:
    """Propaga o genera un request_id, lo bindea en structlog y mide la duración."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    t0 = time.perf_counter()
    response: Response = await call_next(request)
    duration_ms = round((time.perf_counter() - t0) * 1000, 1)

    log = logger.debug if request.url.path in QUIET_PATHS else logger.info
    log(
        "request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=duration_ms,
    )
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Duration-Ms"] = str(duration_ms)
    return response


def create_app() -> FastAPI:
    """Factory que crea la app FastAPI con todos los routers."""
    settings = get_settings()
    app = FastAPI(
        title="dochub",
        description="Indexación y búsqueda de la base documental",
        version=__version__,
        lifespan=lifespan,
    )

    # --- CORS: el dashboard puede vivir en otro origen ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_logging)

    # --- Routers ---
    from dochub.api.routes.documents import router as documents_router
    from dochub.api.routes.health import router as health_router
    from dochub.api.routes.search import router as search_router
    from dochub.api.routes.sync import router as sync_router

    app.include_router(health_router, tags=["health"])
    app.include_router(documents_router, tags=["documents"])
    app.include_router(search_router, tags=["search"])
    app.include_router(sync_router, tags=["indexer"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {"service": "dochub", "version": __version__, "docs": "/docs"}

    return app
