"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Build the FastAPI application (title, version, tags)
  - Configure request context middleware and RFC7807 exception handlers
  - Mount canonical /api routes and the deprecated legacy aliases
  - Start the replenishment job once per process (via JobBootstrapGuard)
  - Expose health check and metrics endpoints

Collaborators:
  - routing.build_canonical_router: canonical routes
  - aliases.include_legacy_routes: legacy aliases (deprecated in OpenAPI)
  - container.get_bootstrap_guard: background job bootstrap
  - infrastructure.db.pool: psycopg connection pool

Notes:
  - The pool is only initialized outside test environments (in-memory adapters)
  - /healthz follows Kubernetes health check convention
  - /metrics exposes Prometheus metrics
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response

from ..container import get_bootstrap_guard, get_hideout_repository
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import RequestContextMiddleware
from ..infrastructure.db.pool import close_pool, init_pool
from .aliases import include_legacy_routes
from .exception_handlers import register_exception_handlers
from .routing import build_canonical_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings, pool and background job."""
    settings = get_settings()

    if not settings.is_test():
        # R: El pool debe existir antes de usar cualquier repositorio Postgres.
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    guard = get_bootstrap_guard()
    try:
        guard.bootstrap()

        logger.info(
            "Hideout API starting up",
            extra={
                "app_env": settings.app_env,
                "app_runtime": settings.app_runtime,
                "replenishment_job": guard.state.value,
                "legacy_sunset": settings.legacy_api_sunset,
            },
        )

        yield

    finally:
        guard.shutdown()
        close_pool()
        logger.info("Hideout API shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Hideout API",
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "party-members", "description": "Party members of the current hideout"},
            {"name": "hideouts", "description": "Hideout lifecycle and invitations"},
            {"name": "builds", "description": "Builds, favorites, translations and crafting"},
            {"name": "stash", "description": "Stash inventory"},
            {"name": "checklist", "description": "Pending build items checklist"},
            {
                "name": "legacy",
                "description": "Deprecated aliases of the canonical routes (see Sunset header)",
            },
        ],
    )

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    app.include_router(build_canonical_router())
    include_legacy_routes(app)

    # R: Health check endpoint for monitoring/orchestration (Kubernetes, Docker)
    @app.get("/healthz")
    def healthz(request: Request):
        db_status = "disconnected"
        try:
            if get_hideout_repository().ping():
                db_status = "connected"
        except Exception as e:
            logger.warning("Health check: DB unavailable", extra={"error": str(e)})

        return {
            "ok": db_status == "connected",
            "db": db_status,
            "request_id": getattr(request.state, "request_id", None),
        }

    # R: Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        body, content_type = get_metrics_response()
        return Response(content=body, media_type=content_type)

    return app


app = create_app()
