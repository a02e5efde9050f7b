"""
Slideshow editing endpoints.
"""

from fastapi import APIRouter, status

from slidereel.api.schemas import (
    AddSlideRequest,
    CreateSlideshowRequest,
    ReplaceTextsRequest,
    SlideResponse,
    SlideshowResponse,
    TextResponse,
    UpdateBackgroundRequest,
)
from slidereel.infra.config.dependencies import CurrentUserId, EditingServiceDep
from slidereel.infra.config.logging_config import get_logger

router = APIRouter()
log = get_logger("api.slideshows")


@router.post(
    "/slideshows", response_model=SlideshowResponse, status_code=status.HTTP_201_CREATED
)
async def create_slideshow(
    request: CreateSlideshowRequest,
    current_user_id: CurrentUserId,
    service: EditingServiceDep,
) -> SlideshowResponse:
    """Create a draft slideshow with one blank slide."""
    slideshow = await service.create(
        current_user_id,
        caption=request.caption,
        aspect_ratio=request.aspect_ratio,
        product_id=request.product_id,
    )
    log.info("slideshow.created", slideshow_id=slideshow.id)
    return SlideshowResponse.from_entity(slideshow)


@router.get("/slideshows/{slideshow_id}", response_model=SlideshowResponse)
async def get_slideshow(
    slideshow_id: str, current_user_id: CurrentUserId, service: EditingServiceDep
) -> SlideshowResponse:
    slideshow = await service.get_for_user(current_user_id, slideshow_id)
    return SlideshowResponse.from_entity(slideshow)


@router.post(
    "/slideshows/{slideshow_id}/slides",
    response_model=SlideResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_slide(
    slideshow_id: str,
    request: AddSlideRequest,
    current_user_id: CurrentUserId,
    service: EditingServiceDep,
) -> SlideResponse:
    slide = await service.add_slide(current_user_id, slideshow_id, request.duration_seconds)
    return SlideResponse.from_entity(slide)


@router.delete("/slideshows/{slideshow_id}/slides/{slide_id}", response_model=SlideshowResponse)
async def delete_slide(
    slideshow_id: str,
    slide_id: str,
    current_user_id: CurrentUserId,
    service: EditingServiceDep,
) -> SlideshowResponse:
    """Delete a slide; the remaining slides are renumbered. The last slide cannot be deleted."""
    slideshow = await service.delete_slide(current_user_id, slideshow_id, slide_id)
    return SlideshowResponse.from_entity(slideshow)


@router.put(
    "/slideshows/{slideshow_id}/slides/{slide_id}/texts",
    response_model=list[TextResponse],
)
async def replace_texts(
    slideshow_id: str,
    slide_id: str,
    request: ReplaceTextsRequest,
    current_user_id: CurrentUserId,
    service: EditingServiceDep,
) -> list[TextResponse]:
    texts = await service.replace_texts(
        current_user_id,
        slideshow_id,
        slide_id,
        [t.model_dump() for t in request.texts],
    )
    return [
        TextResponse(
            id=t.id,
            text=t.text,
            position_x=t.position_x,
            position_y=t.position_y,
            size=t.size,
            rotation=t.rotation,
            font=t.font,
        )
        for t in texts
    ]


@router.put(
    "/slideshows/{slideshow_id}/slides/{slide_id}/background", response_model=SlideResponse
)
async def update_background(
    slideshow_id: str,
    slide_id: str,
    request: UpdateBackgroundRequest,
    current_user_id: CurrentUserId,
    service: EditingServiceDep,
) -> SlideResponse:
    slide = await service.update_background(
        current_user_id, slideshow_id, slide_id, request.image_id
    )
    return SlideResponse.from_entity(slide)
