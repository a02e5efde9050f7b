"""
Slideshow domain entities with core business rules.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from slidereel.domain.exceptions import (
    InvalidStatusTransitionError,
    LastSlideDeletionError,
    SlideNotFoundError,
)
from slidereel.domain.slideshow_status import SlideshowStatus

DEFAULT_SLIDE_DURATION = 3
DEFAULT_ASPECT_RATIO = "9:16"
DEFAULT_FONT = "proxima-nova"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TextOverlay:
    slide_id: str
    text: str
    position_x: float
    position_y: float
    size: int
    rotation: float = 0.0
    font: str = DEFAULT_FONT
    id: str = field(default_factory=lambda: str(uuid4()))


@dataclass
class ImageOverlay:
    slide_id: str
    image_id: str
    position_x: float
    position_y: float
    rotation: float = 0.0
    size: float = 50.0  # percentage of the canvas width
    image_storage_path: Optional[str] = None
    image_owner_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid4()))


@dataclass
class Slide:
    slideshow_id: str
    index: int
    duration_seconds: int = DEFAULT_SLIDE_DURATION
    background_image_id: Optional[str] = None
    background_storage_path: Optional[str] = None
    background_owner_id: Optional[str] = None
    texts: List[TextOverlay] = field(default_factory=list)
    overlays: List[ImageOverlay] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid4()))


@dataclass
class Slideshow:
    id: str
    user_id: str
    caption: str = "Untitled Slideshow"
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    status: SlideshowStatus = SlideshowStatus.DRAFT
    product_id: Optional[str] = None
    slides: List[Slide] = field(default_factory=list)
    frame_paths: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: Optional[datetime] = None

    def ordered_slides(self) -> List[Slide]:
        return sorted(self.slides, key=lambda s: s.index)

    def transition_to_status(self, new_status: SlideshowStatus) -> None:
        """
        Business rule: transition to a new status if valid.

        Raises:
            InvalidStatusTransitionError: If the transition is not allowed
        """
        if not self.status.can_transition_to(new_status):
            raise InvalidStatusTransitionError(self.status.value, new_status.value)
        self.status = new_status
        self.updated_at = _now()

    # ---------- render lifecycle ----------
    def mark_queued(self) -> None:
        self.transition_to_status(SlideshowStatus.QUEUED)

    def start_render(self) -> None:
        """Enter ``rendering`` with an empty frame list (the resumability marker)."""
        self.transition_to_status(SlideshowStatus.RENDERING)
        self.frame_paths = []

    def record_frame(self, path: str) -> None:
        if self.status != SlideshowStatus.RENDERING:
            raise InvalidStatusTransitionError(self.status.value, "record_frame")
        self.frame_paths.append(path)
        self.updated_at = _now()

    def complete_render(self) -> None:
        self.transition_to_status(SlideshowStatus.COMPLETED)

    def rollback_to_draft(self) -> None:
        """Return a failed render to an editable state, whatever the current status."""
        self.status = SlideshowStatus.DRAFT
        self.updated_at = _now()

    def reset_frames(self) -> None:
        self.frame_paths = []
        self.updated_at = _now()

    # ---------- editing ----------
    def add_slide(self, duration_seconds: int = DEFAULT_SLIDE_DURATION) -> Slide:
        slide = Slide(
            slideshow_id=self.id,
            index=len(self.slides),
            duration_seconds=duration_seconds,
        )
        self.slides.append(slide)
        self.updated_at = _now()
        return slide

    def get_slide(self, slide_id: str) -> Slide:
        for slide in self.slides:
            if slide.id == slide_id:
                return slide
        raise SlideNotFoundError(slide_id)

    def delete_slide(self, slide_id: str) -> Slide:
        """
        Business rule: remove a slide and renumber the rest densely from zero.

        Raises:
            LastSlideDeletionError: If this is the only slide left
            SlideNotFoundError: If the slide is not part of this slideshow
        """
        slide = self.get_slide(slide_id)
        if len(self.slides) <= 1:
            raise LastSlideDeletionError(self.id)

        remaining = [s for s in self.ordered_slides() if s.id != slide_id]
        for index, s in enumerate(remaining):
            s.index = index
        self.slides = remaining
        self.updated_at = _now()
        return slide
