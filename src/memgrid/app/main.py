from __future__ import annotations

import structlog
from fastapi import FastAPI

from memgrid.api import router as api_router
from memgrid.app.assembly import release_game
from memgrid.app.runtime import AppRuntime, build_runtime
from memgrid.core.config.settings import settings
from memgrid.core.logging.setup import configure_logging

log = structlog.get_logger()


def create_app(runtime: AppRuntime | None = None) -> FastAPI:
    """
    Application factory.

    This function is the single place where the FastAPI app
    is created and configured. Tests pass their own runtime
    (manual scheduler, in-memory store).
    """
    configure_logging(level=settings.log_level)

    rt = runtime or build_runtime(settings)

    app = FastAPI(
        title="memgrid",
        version="0.1.0",
    )
    app.state.runtime = rt

    @app.on_event("startup")
    async def on_startup() -> None:
        log.info(
            "app.startup",
            environment=rt.settings.env,
            leaderboard_backend=rt.settings.leaderboard_backend,
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        for rec in rt.registry.list():
            release_game(rec.handle)
        log.info("app.shutdown")

    app.include_router(api_router, prefix="/api")

    return app


# ASGI entrypoint
app = create_app()
