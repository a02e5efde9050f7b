"""
Render execution for one slideshow.

Frame paths are persisted after every uploaded slide, so a slideshow found in
``rendering`` after a restart shows exactly how far the render got.
"""

import asyncio
import inspect
import time
from typing import Any, Callable, Optional

from slidereel.application.best_effort import best_effort
from slidereel.application.ports import (
    ObjectStoragePort,
    SlideshowRepositoryPort,
    UsageCounterPort,
)
from slidereel.application.rendering.progress import (
    STAGE_COMPLETED,
    STAGE_FAILED,
    STAGE_SLIDE_RENDERED,
    STAGE_SLIDE_SKIPPED,
    STAGE_STARTED,
    Compositor,
    ProgressListener,
    RenderProgress,
)
from slidereel.domain.entities import Slide, Slideshow
from slidereel.domain.exceptions import SlideshowNotFoundError
from slidereel.infra.config.logging_config import bind_context, get_logger, unbind_context
from slidereel.infra.metrics import (
    RENDER_DURATION_SECONDS,
    RENDERS_COMPLETED,
    RENDERS_FAILED,
    RENDERS_STARTED,
    SLIDES_RENDERED,
    SLIDES_SKIPPED,
)

USAGE_METRIC_SLIDESHOWS = "slideshows"
FRAME_CONTENT_TYPE = "image/png"


def frame_path(user_id: str, slideshow_id: str, slide_id: str) -> str:
    return f"{user_id}/{slideshow_id}/{slide_id}.png"


def frame_prefix(user_id: str, slideshow_id: str) -> str:
    return f"{user_id}/{slideshow_id}/"


class RenderExecutor:
    """
    Composites, encodes and uploads every slide of a slideshow in index order.

    Per-slide failures (no canvas, compositor error, encode or upload error)
    skip that slide and the render continues. Anything failing outside the
    per-slide scope rolls the slideshow back to ``draft`` and re-raises.
    """

    def __init__(
        self,
        repository: SlideshowRepositoryPort,
        storage: ObjectStoragePort,
        usage: UsageCounterPort,
        encode: Callable[[Any], bytes],
    ):
        self.repository = repository
        self.storage = storage
        self.usage = usage
        self.encode = encode
        self._log = get_logger("render.executor")

    async def execute(
        self,
        slideshow_id: str,
        compositor: Compositor,
        on_progress: Optional[ProgressListener] = None,
    ) -> Slideshow:
        started = time.monotonic()
        slideshow: Optional[Slideshow] = None
        bind_context(slideshow_id=slideshow_id)
        try:
            slideshow = await self.repository.get_by_id(slideshow_id)
            if slideshow is None:
                raise SlideshowNotFoundError(slideshow_id)
            bind_context(user_id=slideshow.user_id)

            slides = slideshow.ordered_slides()
            total = len(slides)
            slideshow.start_render()
            await self.repository.save_render_state(slideshow)
            RENDERS_STARTED.inc()
            self._log.info("render.start", slides=total)
            await self._emit(on_progress, RenderProgress(slideshow_id, 0, total, STAGE_STARTED))

            for slide in slides:
                path = await self._render_slide(slideshow, slide, compositor)
                if path is not None:
                    slideshow.record_frame(path)
                    await self.repository.save_render_state(slideshow)
                    SLIDES_RENDERED.inc()
                stage = STAGE_SLIDE_RENDERED if path is not None else STAGE_SLIDE_SKIPPED
                await self._emit(
                    on_progress,
                    RenderProgress(
                        slideshow_id,
                        len(slideshow.frame_paths),
                        total,
                        stage,
                        slide_id=slide.id,
                        index=slide.index,
                    ),
                )

            slideshow.complete_render()
            await self.repository.save_render_state(slideshow)
            RENDERS_COMPLETED.inc()
            RENDER_DURATION_SECONDS.observe(time.monotonic() - started)
            self._log.info(
                "render.completed", frames=len(slideshow.frame_paths), slides=total
            )

            await best_effort(
                "usage.increment",
                self.usage.increment,
                slideshow.user_id,
                USAGE_METRIC_SLIDESHOWS,
            )
            await self._emit(
                on_progress,
                RenderProgress(slideshow_id, len(slideshow.frame_paths), total, STAGE_COMPLETED),
            )
            return slideshow

        except asyncio.CancelledError:
            # Shutdown mid-render: leave ``rendering`` persisted for the resume protocol.
            self._log.warning("render.cancelled")
            raise
        except Exception as exc:
            RENDERS_FAILED.inc()
            self._log.error(
                "render.failed", error=str(exc), error_type=type(exc).__name__, exc_info=True
            )
            if slideshow is not None:
                slideshow.rollback_to_draft()
                await best_effort(
                    "render.rollback", self.repository.save_render_state, slideshow
                )
                await self._emit(
                    on_progress,
                    RenderProgress(
                        slideshow_id,
                        len(slideshow.frame_paths),
                        len(slideshow.slides),
                        STAGE_FAILED,
                    ),
                )
            raise
        finally:
            unbind_context("slideshow_id", "user_id")

    async def _render_slide(
        self, slideshow: Slideshow, slide: Slide, compositor: Compositor
    ) -> Optional[str]:
        """Composite, encode and upload one slide; None means it was skipped."""
        try:
            canvas = compositor(slideshow, slide)
            if inspect.isawaitable(canvas):
                canvas = await canvas
        except Exception as exc:
            return self._skip(slide, "compositor_error", error=str(exc))
        if canvas is None:
            return self._skip(slide, "no_canvas")

        try:
            data = await asyncio.to_thread(self.encode, canvas)
        except Exception as exc:
            return self._skip(slide, "encode_error", error=str(exc))

        path = frame_path(slideshow.user_id, slideshow.id, slide.id)
        try:
            return await self.storage.upload(path, data, FRAME_CONTENT_TYPE)
        except Exception as exc:
            return self._skip(slide, "upload_error", error=str(exc))

    def _skip(self, slide: Slide, reason: str, **extra) -> None:
        SLIDES_SKIPPED.labels(reason=reason).inc()
        self._log.warning(
            "render.slide.skipped", slide_id=slide.id, index=slide.index, reason=reason, **extra
        )
        return None

    async def _emit(
        self, on_progress: Optional[ProgressListener], progress: RenderProgress
    ) -> None:
        if on_progress is not None:
            await best_effort("render.progress", on_progress, progress)
