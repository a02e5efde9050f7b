"""
Unit tests for startup recovery of interrupted renders.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from slidereel.application.rendering.progress import (
    STAGE_COMPLETED,
    STAGE_SLIDE_RENDERED,
    STAGE_STARTED,
)
from slidereel.application.rendering.render_executor import RenderExecutor
from slidereel.application.rendering.render_queue import RenderQueue
from slidereel.application.rendering.resume import (
    RESUME_NOTICE,
    RenderResumeService,
    classify_for_resume,
)
from slidereel.domain.slideshow_status import SlideshowStatus
from tests._helpers.fakes import make_slideshow

pytestmark = pytest.mark.unit


@pytest.fixture
def queue():
    mock_queue = MagicMock()
    mock_queue.submit = AsyncMock()
    mock_queue.state_of = MagicMock(return_value="pending")
    return mock_queue


@pytest.fixture
def seeded(repository):
    rendering = make_slideshow("ss-r", status=SlideshowStatus.RENDERING)
    rendering.frame_paths = ["user-1/ss-r/ss-r-slide-0.png"]
    for slideshow in (
        rendering,
        make_slideshow("ss-q", user_id="user-2", status=SlideshowStatus.QUEUED),
        make_slideshow("ss-d", status=SlideshowStatus.DRAFT),
        make_slideshow("ss-c", status=SlideshowStatus.COMPLETED),
    ):
        repository.put(slideshow)
    return repository


class TestClassification:
    def test_each_status_is_classified(self):
        plan = classify_for_resume(
            [
                make_slideshow("r", status=SlideshowStatus.RENDERING),
                make_slideshow("q", status=SlideshowStatus.QUEUED),
                make_slideshow("d", status=SlideshowStatus.DRAFT),
                make_slideshow("c", status=SlideshowStatus.COMPLETED),
            ]
        )
        assert plan.restart_ids == ["r"]
        assert plan.readmit_ids == ["q"]
        assert plan.resume_set == ["r", "q"]


class TestRecover:
    @pytest.mark.asyncio
    async def test_rendering_is_reset_and_both_groups_readmitted(self, seeded, storage, queue):
        await storage.upload("user-1/ss-r/ss-r-slide-0.png", b"partial", "image/png")
        await storage.upload("user-1/ss-other/slide.png", b"keep", "image/png")
        service = RenderResumeService(seeded, storage, queue, lambda sid: f"compositor-{sid}")

        resumed = await service.recover()

        assert resumed == ["ss-r", "ss-q"]
        assert await storage.list_prefix("user-1/ss-r/") == []
        assert await storage.list_prefix("user-1/ss-other/") == ["user-1/ss-other/slide.png"]
        assert seeded.peek("ss-r").frame_paths == []
        queue.submit.assert_any_await("ss-r", "compositor-ss-r", None)
        queue.submit.assert_any_await("ss-q", "compositor-ss-q", None)
        assert queue.submit.await_count == 2

    @pytest.mark.asyncio
    async def test_queued_slideshow_storage_is_left_alone(self, seeded, storage, queue):
        await storage.upload("user-2/ss-q/unrelated.png", b"x", "image/png")
        service = RenderResumeService(seeded, storage, queue, lambda sid: None)

        await service.recover()

        assert await storage.list_prefix("user-2/ss-q/") == ["user-2/ss-q/unrelated.png"]

    @pytest.mark.asyncio
    async def test_notice_is_per_user(self, seeded, storage, queue):
        service = RenderResumeService(seeded, storage, queue, lambda sid: None)
        assert service.notice_for("user-1") is None

        await service.recover()

        assert service.notice_for("user-1") == {"message": RESUME_NOTICE, "slideshow_ids": ["ss-r"]}
        assert service.notice_for("user-2") == {"message": RESUME_NOTICE, "slideshow_ids": ["ss-q"]}
        assert service.notice_for("user-3") is None

    @pytest.mark.asyncio
    async def test_notice_disappears_once_renders_finish(self, seeded, storage, queue):
        service = RenderResumeService(seeded, storage, queue, lambda sid: None)
        await service.recover()

        queue.state_of.return_value = None
        assert service.notice_for("user-1") is None

    @pytest.mark.asyncio
    async def test_nothing_to_resume(self, repository, storage, queue):
        service = RenderResumeService(repository, storage, queue, lambda sid: None)
        assert await service.recover() == []
        queue.submit.assert_not_awaited()


class TestRecoverIsolation:
    @pytest.mark.asyncio
    async def test_storage_failure_skips_only_that_slideshow(self, seeded, storage, queue):
        storage.list_prefix = AsyncMock(side_effect=ConnectionError("storage down"))
        service = RenderResumeService(seeded, storage, queue, lambda sid: None)

        resumed = await service.recover()

        assert resumed == ["ss-q"]
        queue.submit.assert_awaited_once_with("ss-q", None, None)
        assert seeded.peek("ss-r").status == SlideshowStatus.RENDERING
        assert service.notice_for("user-1") is None
        assert service.notice_for("user-2")["slideshow_ids"] == ["ss-q"]

    @pytest.mark.asyncio
    async def test_readmission_failure_skips_only_that_slideshow(self, seeded, storage, queue):
        async def submit(slideshow_id, compositor, on_progress=None):
            if slideshow_id == "ss-r":
                raise ConnectionError("database unavailable")
            return MagicMock(name="future")

        queue.submit = AsyncMock(side_effect=submit)
        service = RenderResumeService(seeded, storage, queue, lambda sid: None)

        assert await service.recover() == ["ss-q"]


class TestResumedProgress:
    @pytest.mark.asyncio
    async def test_resumed_job_reports_to_the_progress_listener(self, repository, storage, usage):
        repository.put(make_slideshow("ss-q", slide_count=2, status=SlideshowStatus.QUEUED))
        executor = RenderExecutor(repository, storage, usage, lambda canvas: b"png")
        render_queue = RenderQueue(repository, executor)
        seen = []
        service = RenderResumeService(
            repository, storage, render_queue, lambda sid: (lambda slideshow, slide: "canvas"),
            on_progress=seen.append,
        )

        await service.recover()
        await render_queue.admit("ss-q", lambda slideshow, slide: "canvas")

        assert [p.stage for p in seen] == [
            STAGE_STARTED,
            STAGE_SLIDE_RENDERED,
            STAGE_SLIDE_RENDERED,
            STAGE_COMPLETED,
        ]
        assert repository.peek("ss-q").status == SlideshowStatus.COMPLETED
