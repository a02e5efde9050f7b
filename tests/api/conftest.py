"""
API test fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from slidereel.api.errors import setup_error_handlers
from slidereel.api.storage import router as storage_router
from slidereel.api.v1 import v1_router
from slidereel.infra.config.dependencies import (
    get_catalog_repository,
    get_current_user_id,
    get_image_url_builder,
    get_llm_client,
    get_slideshow_repository,
)
from slidereel.infra.messaging.progress_broadcaster import RenderProgressBroadcaster
from slidereel.infra.storage.image_urls import ImageUrlBuilder
from tests._helpers.fakes import FakeLLM

USER_ID = "user-1"


@pytest.fixture
def llm():
    return FakeLLM(document={"caption": "Mock #ad", "slides": []})


@pytest.fixture
def render_queue():
    queue = MagicMock()
    queue.submit = AsyncMock()
    queue.state_of = MagicMock(return_value=None)
    queue.depth = 0
    return queue


@pytest.fixture
def resume_service():
    service = MagicMock()
    service.notice_for = MagicMock(return_value=None)
    return service


@pytest.fixture
def compositor():
    return MagicMock(name="compositor")


@pytest.fixture
def app(repository, catalog, llm, render_queue, resume_service, compositor, storage):
    """FastAPI app with the v1 routers and every external dependency replaced."""
    application = FastAPI()
    setup_error_handlers(application)
    application.include_router(v1_router, prefix="/api")
    application.include_router(storage_router, prefix="/api")

    application.state.storage = storage
    application.state.render_queue = render_queue
    application.state.resume_service = resume_service
    application.state.compositor_factory = lambda slideshow_id: compositor
    application.state.broadcaster = RenderProgressBroadcaster()

    application.dependency_overrides[get_current_user_id] = lambda: USER_ID
    application.dependency_overrides[get_slideshow_repository] = lambda: repository
    application.dependency_overrides[get_catalog_repository] = lambda: catalog
    application.dependency_overrides[get_llm_client] = lambda: llm
    application.dependency_overrides[get_image_url_builder] = lambda: ImageUrlBuilder(
        "https://project.supabase.test"
    )
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
