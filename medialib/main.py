"""Media library service main application."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from .api.playlists import router as playlists_router
from .api.streaming import router as streaming_router
from .api.tracks import router as tracks_router
from .metrics import METRICS_CONTENT_TYPE, get_metrics
from .shared.db import Database
from .shared.health import router as health_router
from .shared.logging import configure_logging, get_logger
from .shared.middleware import CorrelationIDMiddleware, register_exception_handlers
from .shared.settings import Settings, app_settings
from .shared.storage import LocalFileStorage

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    storage: Optional[LocalFileStorage] = None,
) -> FastAPI:
    """Build the application with its store handles.

    Args:
        settings: Configuration; defaults to the environment-driven app_settings
        database: Relational store handle; built from settings when omitted
        storage: File store; built from settings when omitted
    """
    settings = settings or app_settings
    configure_logging(log_level=settings.log_level, log_format=settings.log_format)

    database = database or Database(settings.sqlalchemy_url)
    storage = storage or LocalFileStorage(settings.upload_dir, max_bytes=settings.max_upload_bytes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Prepare the stores on startup and release the engine on shutdown."""
        logger.info("media_library_starting", version=settings.app_version)

        storage.ensure_root()
        if settings.create_schema:
            await database.create_all()

        logger.info(
            "media_library_started",
            version=settings.app_version,
            upload_dir=str(storage.root),
        )

        yield

        logger.info("media_library_shutting_down")
        await database.dispose()
        logger.info("media_library_shutdown")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Personal media library: track uploads, playlists and audio streaming",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(CorrelationIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(tracks_router, prefix=settings.api_prefix)
    app.include_router(streaming_router, prefix=settings.api_prefix)
    app.include_router(playlists_router, prefix=settings.api_prefix)

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=get_metrics(), media_type=METRICS_CONTENT_TYPE)

    # Uploaded files are also served directly from the storage root.
    app.mount(
        settings.static_prefix,
        StaticFiles(directory=storage.root, check_dir=False),
        name="uploads",
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=app_settings.host, port=app_settings.port)
