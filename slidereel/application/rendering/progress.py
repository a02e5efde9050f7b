"""
Render progress payload and the callback types around a render job.
"""

from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from slidereel.domain.entities import Slide, Slideshow

STAGE_STARTED = "started"
STAGE_SLIDE_RENDERED = "slide_rendered"
STAGE_SLIDE_SKIPPED = "slide_skipped"
STAGE_COMPLETED = "completed"
STAGE_FAILED = "failed"


@dataclass(frozen=True)
class RenderProgress:
    slideshow_id: str
    completed: int
    total: int
    stage: str
    slide_id: Optional[str] = None
    index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Listeners and compositors may be plain functions or coroutines.
ProgressListener = Callable[[RenderProgress], Union[None, Awaitable[None]]]
Compositor = Callable[[Slideshow, Slide], Any]
