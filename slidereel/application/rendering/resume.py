"""
Startup recovery of renders interrupted by a process restart.

``rendering`` slideshows may have partial frames in storage, so their prefix
is wiped and their path list reset before re-admission. ``queued`` slideshows
never started and are re-admitted as they are.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from slidereel.application.best_effort import best_effort
from slidereel.application.ports import ObjectStoragePort, SlideshowRepositoryPort
from slidereel.application.rendering.progress import Compositor, ProgressListener
from slidereel.application.rendering.render_executor import frame_prefix
from slidereel.application.rendering.render_queue import RenderQueue
from slidereel.domain.entities import Slideshow
from slidereel.domain.slideshow_status import SlideshowStatus
from slidereel.infra.config.logging_config import get_logger

RESUME_NOTICE = "Resuming render..."


@dataclass
class ResumePlan:
    restart_ids: List[str] = field(default_factory=list)
    readmit_ids: List[str] = field(default_factory=list)
    user_ids: dict = field(default_factory=dict)

    @property
    def resume_set(self) -> List[str]:
        return [*self.restart_ids, *self.readmit_ids]

    def for_user(self, user_id: str) -> List[str]:
        return [sid for sid in self.resume_set if self.user_ids.get(sid) == user_id]


def classify_for_resume(slideshows: Iterable[Slideshow]) -> ResumePlan:
    plan = ResumePlan()
    for slideshow in slideshows:
        if slideshow.status == SlideshowStatus.RENDERING:
            plan.restart_ids.append(slideshow.id)
        elif slideshow.status == SlideshowStatus.QUEUED:
            plan.readmit_ids.append(slideshow.id)
        else:
            continue
        plan.user_ids[slideshow.id] = slideshow.user_id
    return plan


class RenderResumeService:
    def __init__(
        self,
        repository: SlideshowRepositoryPort,
        storage: ObjectStoragePort,
        queue: RenderQueue,
        compositor_factory: Callable[[str], Compositor],
        on_progress: Optional[ProgressListener] = None,
    ):
        self.repository = repository
        self.storage = storage
        self.queue = queue
        self.compositor_factory = compositor_factory
        self.on_progress = on_progress
        self.last_plan: Optional[ResumePlan] = None
        self._log = get_logger("render.resume")

    async def _reset(self, slideshow: Slideshow) -> bool:
        stale = await self.storage.list_prefix(frame_prefix(slideshow.user_id, slideshow.id))
        if stale:
            await self.storage.remove(stale)
        slideshow.reset_frames()
        await self.repository.save_render_state(slideshow)
        self._log.info("render.resume.reset", slideshow_id=slideshow.id, removed=len(stale))
        return True

    async def recover(self) -> List[str]:
        """
        Reset and re-admit every interrupted render; return the resume set.

        A slideshow whose reset or re-admission fails is logged and left out
        of the resume set; the others are still resumed.
        """
        interrupted = await self.repository.list_by_status(
            [SlideshowStatus.RENDERING, SlideshowStatus.QUEUED]
        )
        plan = classify_for_resume(interrupted)
        by_id = {s.id: s for s in interrupted}

        reset_ids = []
        for slideshow_id in plan.restart_ids:
            if await best_effort("render.resume.reset", self._reset, by_id[slideshow_id]):
                reset_ids.append(slideshow_id)
        plan.restart_ids = reset_ids

        for ids in (plan.restart_ids, plan.readmit_ids):
            admitted = []
            for slideshow_id in ids:
                future = await best_effort(
                    "render.resume.readmit",
                    self.queue.submit,
                    slideshow_id,
                    self.compositor_factory(slideshow_id),
                    self.on_progress,
                )
                if future is not None:
                    admitted.append(slideshow_id)
            ids[:] = admitted

        self.last_plan = plan
        self._log.info(
            "render.resume.done",
            restarted=len(plan.restart_ids),
            readmitted=len(plan.readmit_ids),
            skipped=len(interrupted) - len(plan.resume_set),
        )
        return plan.resume_set

    def notice_for(self, user_id: str) -> Optional[dict]:
        """Resume notice for a user, or None when none of their renders resumed."""
        if self.last_plan is None:
            return None
        ids = [sid for sid in self.last_plan.for_user(user_id) if self.queue.state_of(sid)]
        if not ids:
            return None
        return {"message": RESUME_NOTICE, "slideshow_ids": ids}
