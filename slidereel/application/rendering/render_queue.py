"""
In-process render queue.

One FIFO, one drain task, one job at a time. A slideshow id can have at most
one outstanding job: a second request for the same id joins the first one's
future and adds its progress listener instead of creating a new job.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional

from slidereel.application.best_effort import best_effort
from slidereel.application.ports import SlideshowRepositoryPort
from slidereel.application.rendering.progress import (
    Compositor,
    ProgressListener,
    RenderProgress,
)
from slidereel.application.rendering.render_executor import RenderExecutor
from slidereel.domain.exceptions import RenderAdmissionError
from slidereel.domain.slideshow_status import SlideshowStatus
from slidereel.infra.config.logging_config import get_logger
from slidereel.infra.metrics import RENDER_QUEUE_DEPTH

STATE_PENDING = "pending"
STATE_IN_FLIGHT = "in_flight"


@dataclass
class RenderJob:
    slideshow_id: str
    compositor: Compositor


def _consume_exception(future: "asyncio.Future") -> None:
    # Callers that never await their future must not trigger
    # "exception was never retrieved" warnings.
    if not future.cancelled():
        future.exception()


class RenderQueue:
    """Serialises render jobs and fans progress out to every listener of a job."""

    def __init__(self, repository: SlideshowRepositoryPort, executor: RenderExecutor):
        self._repository = repository
        self._executor = executor
        self._pending: Deque[RenderJob] = deque()
        self._outstanding: Dict[str, asyncio.Future] = {}
        self._listeners: Dict[str, List[ProgressListener]] = {}
        self._in_flight: Optional[str] = None
        self._drain_task: Optional[asyncio.Task] = None
        self._log = get_logger("render.queue")

    async def submit(
        self,
        slideshow_id: str,
        compositor: Compositor,
        on_progress: Optional[ProgressListener] = None,
    ) -> asyncio.Future:
        """
        Admit a render and return the job's shared future.

        Raises:
            RenderAdmissionError: If the ``queued`` status could not be persisted
        """
        existing = self._outstanding.get(slideshow_id)
        if existing is not None:
            if on_progress is not None:
                self._register(slideshow_id, on_progress)
            self._log.info("render.queue.coalesced", slideshow_id=slideshow_id)
            return existing

        future = asyncio.get_running_loop().create_future()
        future.add_done_callback(_consume_exception)
        # Registered before the first await so a concurrent submit coalesces.
        self._outstanding[slideshow_id] = future
        self._listeners[slideshow_id] = [on_progress] if on_progress is not None else []

        try:
            await self._repository.update_status(slideshow_id, SlideshowStatus.QUEUED)
        except Exception as exc:
            self._forget(slideshow_id)
            error = RenderAdmissionError(slideshow_id, str(exc))
            future.set_exception(error)
            self._log.error(
                "render.queue.admission_failed", slideshow_id=slideshow_id, error=str(exc)
            )
            raise error from exc

        self._pending.append(RenderJob(slideshow_id, compositor))
        self._update_depth()
        self._log.info(
            "render.queue.admitted", slideshow_id=slideshow_id, position=len(self._pending)
        )
        self._ensure_draining()
        return future

    async def admit(
        self,
        slideshow_id: str,
        compositor: Compositor,
        on_progress: Optional[ProgressListener] = None,
    ) -> None:
        """Submit and wait for the job to finish; raises the job's error."""
        future = await self.submit(slideshow_id, compositor, on_progress)
        # Shielded so one cancelled waiter does not cancel the shared job.
        await asyncio.shield(future)

    def add_listener(self, slideshow_id: str, listener: ProgressListener) -> bool:
        """Attach a listener to an outstanding job; False if there is none."""
        if slideshow_id not in self._outstanding:
            return False
        self._register(slideshow_id, listener)
        return True

    def _register(self, slideshow_id: str, listener: ProgressListener) -> None:
        # A listener registered twice would see every event twice.
        listeners = self._listeners.setdefault(slideshow_id, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_listener(self, slideshow_id: str, listener: ProgressListener) -> None:
        listeners = self._listeners.get(slideshow_id)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def state_of(self, slideshow_id: str) -> Optional[str]:
        if self._in_flight == slideshow_id:
            return STATE_IN_FLIGHT
        if slideshow_id in self._outstanding:
            return STATE_PENDING
        return None

    @property
    def pending_ids(self) -> List[str]:
        return [job.slideshow_id for job in self._pending]

    @property
    def depth(self) -> int:
        return len(self._pending) + (1 if self._in_flight else 0)

    def _ensure_draining(self) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending:
            job = self._pending.popleft()
            self._in_flight = job.slideshow_id
            self._update_depth()
            future = self._outstanding.get(job.slideshow_id)
            try:
                await self._executor.execute(
                    job.slideshow_id,
                    job.compositor,
                    on_progress=self._fan_out(job.slideshow_id),
                )
            except asyncio.CancelledError:
                if future is not None and not future.done():
                    future.cancel()
                self._forget(job.slideshow_id)
                raise
            except Exception as exc:
                self._log.error(
                    "render.queue.job_failed",
                    slideshow_id=job.slideshow_id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                if future is not None and not future.done():
                    future.set_exception(exc)
            else:
                if future is not None and not future.done():
                    future.set_result(None)
            finally:
                self._forget(job.slideshow_id)
                self._in_flight = None
                self._update_depth()

    def _fan_out(self, slideshow_id: str):
        async def notify(progress: RenderProgress) -> None:
            # Snapshot: listeners may join or leave while we iterate.
            for listener in list(self._listeners.get(slideshow_id, [])):
                await best_effort("render.progress_listener", listener, progress)

        return notify

    def _forget(self, slideshow_id: str) -> None:
        self._outstanding.pop(slideshow_id, None)
        self._listeners.pop(slideshow_id, None)

    def _update_depth(self) -> None:
        RENDER_QUEUE_DEPTH.set(self.depth)

    async def shutdown(self) -> None:
        """Cancel the drain task; jobs left behind are picked up by the resume protocol."""
        task = self._drain_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        for slideshow_id, future in list(self._outstanding.items()):
            if not future.done():
                future.cancel()
        self._pending.clear()
        self._outstanding.clear()
        self._listeners.clear()
        self._in_flight = None
        self._update_depth()
        self._log.info("render.queue.shutdown")
