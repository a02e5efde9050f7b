"""
FastAPI dependency injection configuration.

Long-lived components (storage, render queue, compositor, broadcaster, resume service)
are built once in the app lifespan and read from ``app.state``.
"""

from functools import lru_cache
from typing import Annotated, Callable, Optional, Union

from fastapi import Depends, Header, HTTPException, status
from starlette.requests import HTTPConnection

from slidereel.application.generation.orchestrator import GenerationOrchestrator
from slidereel.application.ports import ObjectStoragePort
from slidereel.application.rendering.progress import Compositor
from slidereel.application.rendering.render_queue import RenderQueue
from slidereel.application.rendering.resume import RenderResumeService
from slidereel.application.slideshow_editing import SlideshowEditingService
from slidereel.data.repositories.catalog_repository import CatalogRepository
from slidereel.data.repositories.slideshow_repository import SlideshowRepository
from slidereel.infra.auth.jwt_auth import get_token_verifier
from slidereel.infra.config.database import get_session_factory
from slidereel.infra.config.logging_config import get_logger
from slidereel.infra.config.settings import get_settings
from slidereel.infra.llm.langchain_client import LangChainClient
from slidereel.infra.llm.mock_client import MockLLMClient
from slidereel.infra.messaging.progress_broadcaster import RenderProgressBroadcaster
from slidereel.infra.storage.image_urls import ImageUrlBuilder

DEV_USER_ID = "12345678-1234-5678-9012-123456789012"
MOCK_API_KEY = "dummy-key-for-test"


async def get_current_user_id(
    authorization: Annotated[Optional[str], Header()] = None,
) -> str:
    """Extract user ID from JWT token."""
    settings = get_settings()
    logger = get_logger("auth")

    if settings.disable_auth:
        return DEV_USER_ID

    if not authorization:
        logger.info("auth.missing_header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        logger.info("auth.invalid_header_format")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return get_token_verifier().user_id(token)


async def verify_websocket_token(token: Optional[str]) -> Optional[str]:
    """User id from a websocket ``token`` query parameter, or None."""
    if get_settings().disable_auth:
        return DEV_USER_ID
    if not token:
        return None
    try:
        return get_token_verifier().user_id(token)
    except HTTPException:
        get_logger("auth.ws").info("auth.ws.invalid_token")
        return None


def get_slideshow_repository() -> SlideshowRepository:
    return SlideshowRepository(get_session_factory())


def get_catalog_repository() -> CatalogRepository:
    return CatalogRepository(get_session_factory())


@lru_cache
def get_llm_client() -> Union[LangChainClient, MockLLMClient]:
    """Shared LLM client; the mock is used while OPENAI_API_KEY is the dummy key."""
    settings = get_settings()
    if settings.openai_api_key == MOCK_API_KEY:
        return MockLLMClient()
    return LangChainClient(
        model_name=settings.generation_model,
        planning_model_name=settings.planning_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        api_key=settings.openai_api_key,
    )


def get_image_url_builder() -> ImageUrlBuilder:
    settings = get_settings()
    return ImageUrlBuilder(settings.supabase_url, settings.public_images_bucket)


def get_orchestrator(
    catalog: CatalogRepository = Depends(get_catalog_repository),
    llm_client=Depends(get_llm_client),
    url_builder: ImageUrlBuilder = Depends(get_image_url_builder),
) -> GenerationOrchestrator:
    settings = get_settings()
    return GenerationOrchestrator(
        catalog=catalog,
        planner=llm_client,
        generator=llm_client,
        url_for=url_builder,
        canvas_width=settings.canvas_width,
        margin=settings.canvas_safe_margin,
        max_tool_rounds=settings.generation_max_tool_rounds,
        max_retries=settings.generation_max_retries,
        max_slides=settings.generation_max_slides,
        default_slides=settings.generation_default_slides,
    )


def get_editing_service(
    repository: SlideshowRepository = Depends(get_slideshow_repository),
) -> SlideshowEditingService:
    settings = get_settings()
    return SlideshowEditingService(
        repository, canvas_width=settings.canvas_width, margin=settings.canvas_safe_margin
    )


def get_render_queue(connection: HTTPConnection) -> RenderQueue:
    return connection.app.state.render_queue


def get_object_storage(connection: HTTPConnection) -> ObjectStoragePort:
    return connection.app.state.storage


def get_compositor_factory(connection: HTTPConnection) -> Callable[[str], Compositor]:
    return connection.app.state.compositor_factory


def get_progress_broadcaster(connection: HTTPConnection) -> RenderProgressBroadcaster:
    return connection.app.state.broadcaster


def get_resume_service(connection: HTTPConnection) -> RenderResumeService:
    return connection.app.state.resume_service


# Type aliases for cleaner dependency injection
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
OrchestratorDep = Annotated[GenerationOrchestrator, Depends(get_orchestrator)]
EditingServiceDep = Annotated[SlideshowEditingService, Depends(get_editing_service)]
RenderQueueDep = Annotated[RenderQueue, Depends(get_render_queue)]
CompositorFactoryDep = Annotated[Callable[[str], Compositor], Depends(get_compositor_factory)]
BroadcasterDep = Annotated[RenderProgressBroadcaster, Depends(get_progress_broadcaster)]
ResumeServiceDep = Annotated[RenderResumeService, Depends(get_resume_service)]
ObjectStorageDep = Annotated[ObjectStoragePort, Depends(get_object_storage)]
