"""
FastAPI application entry point for the SlideReel API.
"""

from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slidereel.api.errors import setup_error_handlers
from slidereel.api.storage import router as storage_router
from slidereel.api.v1 import v1_router
from slidereel.application.ports import ObjectStoragePort
from slidereel.application.rendering.render_executor import RenderExecutor
from slidereel.application.rendering.render_queue import RenderQueue
from slidereel.application.rendering.resume import RenderResumeService
from slidereel.data.repositories.slideshow_repository import SlideshowRepository
from slidereel.data.repositories.usage_repository import UsageRepository
from slidereel.infra.compositor.pillow_compositor import (
    PillowSlideCompositor,
    PngFrameEncoder,
)
from slidereel.infra.config.database import create_tables, engine, get_session_factory
from slidereel.infra.config.logging_config import get_logger, setup_logging
from slidereel.infra.config.settings import Settings, get_settings
from slidereel.infra.messaging.progress_broadcaster import RenderProgressBroadcaster
from slidereel.infra.metrics import metrics_router
from slidereel.infra.middleware.request_context import RequestContextMiddleware
from slidereel.infra.storage.memory_storage import InMemoryObjectStorage
from slidereel.infra.storage.supabase_storage import (
    SupabaseObjectStorage,
    create_supabase_client,
)

settings = get_settings()


def build_object_storage(settings: Settings) -> ObjectStoragePort:
    """Supabase storage when configured, process-local storage otherwise."""
    if settings.supabase_url and settings.supabase_key:
        return SupabaseObjectStorage(
            create_supabase_client(settings), settings.rendered_slides_bucket
        )
    return InMemoryObjectStorage(settings.rendered_slides_bucket)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    logger = get_logger("app")
    logger.info(
        "app.startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    await create_tables()
    logger.info("database.initialized")

    session_factory = get_session_factory()
    repository = SlideshowRepository(session_factory)
    storage = build_object_storage(settings)
    redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    broadcaster = RenderProgressBroadcaster(redis_client)

    executor = RenderExecutor(
        repository,
        storage,
        UsageRepository(session_factory),
        PngFrameEncoder(settings.render_target_width),
    )
    queue = RenderQueue(repository, executor)
    compositor = PillowSlideCompositor(
        storage,
        user_images_bucket=settings.user_images_bucket,
        public_images_bucket=settings.public_images_bucket,
        canvas_width=settings.canvas_width,
    )
    resume_service = RenderResumeService(
        repository,
        storage,
        queue,
        compositor_factory=lambda slideshow_id: compositor,
        on_progress=broadcaster,
    )

    app.state.storage = storage
    app.state.broadcaster = broadcaster
    app.state.render_queue = queue
    app.state.compositor_factory = resume_service.compositor_factory
    app.state.resume_service = resume_service

    resumed = await resume_service.recover()
    if resumed:
        logger.info("render.resume.scheduled", count=len(resumed))

    yield

    # Shutdown
    await queue.shutdown()
    await redis_client.aclose()
    await engine.dispose()
    logger.info("app.shutdown", app_name=settings.app_name)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="AI slideshow generation and rendering service",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request context + logging middleware
    app.add_middleware(RequestContextMiddleware)

    setup_error_handlers(app)

    # Include routers
    app.include_router(v1_router, prefix="/api")
    app.include_router(storage_router, prefix="/api")
    if settings.prometheus_metrics_enabled:
        app.include_router(metrics_router)

    @app.get("/health")
    async def health_check():
        """Detailed health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": "1.0.0",
        }

    return app


# Create FastAPI application
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "slidereel.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug",
    )
