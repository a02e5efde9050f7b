"""
Editor-side operations on slideshows.

Edits are only allowed while no render is outstanding; once a render is
admitted the render pipeline owns the slideshow until it is back in
``draft`` or reaches ``completed``.
"""

from typing import Any, Dict, List, Optional
from uuid import uuid4

from slidereel.application.ports import SlideshowRepositoryPort
from slidereel.domain.entities import DEFAULT_FONT, Slide, Slideshow, TextOverlay
from slidereel.domain.exceptions import SlideshowBusyError, SlideshowNotFoundError
from slidereel.domain.layout import (
    SAFE_MARGIN,
    canvas_size_for_aspect_ratio,
    snap_font_size,
    validate_text_position,
)
from slidereel.infra.config.logging_config import get_logger


class SlideshowEditingService:
    def __init__(
        self,
        repository: SlideshowRepositoryPort,
        canvas_width: int = 300,
        margin: int = SAFE_MARGIN,
    ):
        self.repository = repository
        self.canvas_width = canvas_width
        self.margin = margin
        self._log = get_logger("slideshow.editing")

    async def create(
        self,
        user_id: str,
        caption: str = "Untitled Slideshow",
        aspect_ratio: str = "9:16",
        product_id: Optional[str] = None,
    ) -> Slideshow:
        """New draft with one blank slide."""
        slideshow = Slideshow(
            id=str(uuid4()),
            user_id=user_id,
            caption=caption,
            aspect_ratio=aspect_ratio,
            product_id=product_id,
        )
        slideshow.add_slide()
        return await self.repository.create(slideshow)

    async def get_for_user(self, user_id: str, slideshow_id: str) -> Slideshow:
        """
        Raises:
            SlideshowNotFoundError: If missing or owned by another user
        """
        slideshow = await self.repository.get_by_id(slideshow_id)
        if slideshow is None or slideshow.user_id != user_id:
            raise SlideshowNotFoundError(slideshow_id)
        return slideshow

    async def _editable(self, user_id: str, slideshow_id: str) -> Slideshow:
        slideshow = await self.get_for_user(user_id, slideshow_id)
        if not slideshow.status.is_editable():
            raise SlideshowBusyError(slideshow_id, slideshow.status.value)
        return slideshow

    async def add_slide(self, user_id: str, slideshow_id: str, duration_seconds: int = 3) -> Slide:
        slideshow = await self._editable(user_id, slideshow_id)
        slide = slideshow.add_slide(duration_seconds)
        return await self.repository.add_slide(slide)

    async def delete_slide(self, user_id: str, slideshow_id: str, slide_id: str) -> Slideshow:
        slideshow = await self._editable(user_id, slideshow_id)
        slideshow.delete_slide(slide_id)
        await self.repository.delete_slide(slideshow, slide_id)
        return slideshow

    async def replace_texts(
        self,
        user_id: str,
        slideshow_id: str,
        slide_id: str,
        texts: List[Dict[str, Any]],
    ) -> List[TextOverlay]:
        """Replace a slide's texts; sizes are snapped and positions clamped to the safe area."""
        slideshow = await self._editable(user_id, slideshow_id)
        slide = slideshow.get_slide(slide_id)
        width, height = canvas_size_for_aspect_ratio(slideshow.aspect_ratio, self.canvas_width)

        overlays = []
        adjusted = 0
        for item in texts:
            size = snap_font_size(item.get("size"))
            check = validate_text_position(
                item["text"],
                size,
                float(item["position_x"]),
                float(item["position_y"]),
                width,
                height,
                self.margin,
            )
            adjusted += int(check.adjusted)
            overlays.append(
                TextOverlay(
                    slide_id=slide.id,
                    text=item["text"],
                    position_x=check.x,
                    position_y=check.y,
                    size=size,
                    rotation=float(item.get("rotation") or 0),
                    font=item.get("font") or DEFAULT_FONT,
                )
            )
        await self.repository.replace_texts(slide.id, overlays)
        self._log.info("slide.texts.saved", slide_id=slide.id, count=len(overlays), adjusted=adjusted)
        return overlays

    async def update_background(
        self, user_id: str, slideshow_id: str, slide_id: str, image_id: Optional[str]
    ) -> Slide:
        slideshow = await self._editable(user_id, slideshow_id)
        slide = slideshow.get_slide(slide_id)
        await self.repository.update_background(slide.id, image_id)
        slide.background_image_id = image_id
        return slide
