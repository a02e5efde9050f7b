"""API v1 routers"""

from fastapi import APIRouter

from .generation import router as generation_router
from .rendering import router as rendering_router
from .slideshows import router as slideshows_router

v1_router = APIRouter(prefix="/v1")

v1_router.include_router(generation_router, tags=["generation"])
v1_router.include_router(slideshows_router, tags=["slideshows"])
v1_router.include_router(rendering_router, tags=["rendering"])
