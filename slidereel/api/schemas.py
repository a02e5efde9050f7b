"""
Request and response schemas for the HTTP API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from slidereel.domain.entities import Slide, Slideshow


class ErrorResponse(BaseModel):
    error: str
    detail: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ---------- GENERATION ----------
class GenerateSlideshowRequest(BaseModel):
    # Optional here so a missing id surfaces as MISSING_FIELD (400), not a 422.
    product_id: Optional[str] = Field(None, description="Product to advertise")
    prompt: str = Field("", max_length=5000, description="Free-text brief, e.g. '5 slides about...'")
    selected_image_ids: Optional[List[str]] = Field(
        None, description="Restrict product overlay images to these ids"
    )
    selected_collection_ids: Optional[List[str]] = Field(
        None, description="Collections whose images can be used as backgrounds"
    )
    aspect_ratio: Optional[str] = Field(None, description="'W:H', defaults to 9:16")


# ---------- SLIDESHOW EDITING ----------
class CreateSlideshowRequest(BaseModel):
    caption: str = Field("Untitled Slideshow", max_length=2200)
    aspect_ratio: str = Field("9:16", pattern=r"^\d+:\d+$")
    product_id: Optional[str] = None


class AddSlideRequest(BaseModel):
    duration_seconds: int = Field(3, ge=1, le=60)


class TextInput(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    position_x: float
    position_y: float
    size: float = Field(24, description="Snapped to the nearest font tier on save")
    rotation: float = Field(0, ge=0, le=360)
    font: Optional[str] = None


class ReplaceTextsRequest(BaseModel):
    texts: List[TextInput] = Field(default_factory=list)


class UpdateBackgroundRequest(BaseModel):
    image_id: Optional[str] = Field(None, description="Image id; null clears the background")


class TextResponse(BaseModel):
    id: str
    text: str
    position_x: float
    position_y: float
    size: int
    rotation: float
    font: str


class OverlayResponse(BaseModel):
    id: str
    image_id: str
    position_x: float
    position_y: float
    rotation: float
    size: float


class SlideResponse(BaseModel):
    id: str
    index: int
    duration_seconds: int
    background_image_id: Optional[str] = None
    texts: List[TextResponse] = Field(default_factory=list)
    overlays: List[OverlayResponse] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, slide: Slide) -> "SlideResponse":
        return cls(
            id=slide.id,
            index=slide.index,
            duration_seconds=slide.duration_seconds,
            background_image_id=slide.background_image_id,
            texts=[
                TextResponse(
                    id=t.id,
                    text=t.text,
                    position_x=t.position_x,
                    position_y=t.position_y,
                    size=t.size,
                    rotation=t.rotation,
                    font=t.font,
                )
                for t in slide.texts
            ],
            overlays=[
                OverlayResponse(
                    id=o.id,
                    image_id=o.image_id,
                    position_x=o.position_x,
                    position_y=o.position_y,
                    rotation=o.rotation,
                    size=o.size,
                )
                for o in slide.overlays
            ],
        )


class SlideshowResponse(BaseModel):
    id: str
    caption: str
    aspect_ratio: str
    status: str
    product_id: Optional[str] = None
    frame_paths: List[str] = Field(default_factory=list)
    slides: List[SlideResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, slideshow: Slideshow) -> "SlideshowResponse":
        return cls(
            id=slideshow.id,
            caption=slideshow.caption,
            aspect_ratio=slideshow.aspect_ratio,
            status=slideshow.status.value,
            product_id=slideshow.product_id,
            frame_paths=list(slideshow.frame_paths),
            slides=[SlideResponse.from_entity(s) for s in slideshow.ordered_slides()],
            created_at=slideshow.created_at,
            updated_at=slideshow.updated_at,
        )


# ---------- RENDERING ----------
class RenderAdmittedResponse(BaseModel):
    slideshow_id: str
    status: str
    coalesced: bool = Field(..., description="True when joined an already outstanding render")


class RenderStatusResponse(BaseModel):
    slideshow_id: str
    status: str
    frame_paths: List[str]
    slide_count: int
    queue_state: Optional[str] = Field(None, description="pending, in_flight or null")


class ResumeNoticeResponse(BaseModel):
    message: Optional[str] = None
    slideshow_ids: List[str] = Field(default_factory=list)
