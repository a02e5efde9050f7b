"""
Unit tests for per-slideshow render execution.
"""

import pytest

from slidereel.application.rendering.progress import (
    STAGE_COMPLETED,
    STAGE_FAILED,
    STAGE_SLIDE_RENDERED,
    STAGE_SLIDE_SKIPPED,
    STAGE_STARTED,
)
from slidereel.application.rendering.render_executor import (
    USAGE_METRIC_SLIDESHOWS,
    RenderExecutor,
    frame_path,
)
from slidereel.domain.exceptions import SlideshowNotFoundError
from slidereel.domain.slideshow_status import SlideshowStatus
from slidereel.infra.storage.memory_storage import InMemoryObjectStorage
from tests._helpers.fakes import FakeUsageCounter, make_slideshow

pytestmark = pytest.mark.unit


def encode(canvas):
    return f"png:{canvas}".encode()


def compositor(slideshow, slide):
    return f"canvas-{slide.index}"


class FailingUploadStorage(InMemoryObjectStorage):
    def __init__(self, fail_paths):
        super().__init__()
        self.fail_paths = set(fail_paths)

    async def upload(self, path, data, content_type):
        if path in self.fail_paths:
            raise ConnectionError("upload failed")
        return await super().upload(path, data, content_type)


@pytest.fixture
def queued_slideshow(repository):
    return repository.put(make_slideshow(status=SlideshowStatus.QUEUED))


@pytest.fixture
def executor(repository, storage, usage):
    return RenderExecutor(repository, storage, usage, encode)


class TestRenderExecutor:
    @pytest.mark.asyncio
    async def test_renders_every_slide_in_order(
        self, executor, repository, storage, usage, queued_slideshow
    ):
        progress = []
        result = await executor.execute("ss-1", compositor, on_progress=progress.append)

        expected = [frame_path("user-1", "ss-1", f"ss-1-slide-{i}") for i in range(3)]
        assert result.status == SlideshowStatus.COMPLETED
        assert result.frame_paths == expected
        assert await storage.download(expected[0]) == b"png:canvas-0"

        # Paths are persisted after every slide and only grow.
        assert repository.saved_states == [
            (SlideshowStatus.RENDERING, []),
            (SlideshowStatus.RENDERING, expected[:1]),
            (SlideshowStatus.RENDERING, expected[:2]),
            (SlideshowStatus.RENDERING, expected),
            (SlideshowStatus.COMPLETED, expected),
        ]
        assert usage.calls == [("user-1", USAGE_METRIC_SLIDESHOWS, 1)]
        assert [p.stage for p in progress] == [
            STAGE_STARTED,
            STAGE_SLIDE_RENDERED,
            STAGE_SLIDE_RENDERED,
            STAGE_SLIDE_RENDERED,
            STAGE_COMPLETED,
        ]
        assert [p.completed for p in progress] == [0, 1, 2, 3, 3]

    @pytest.mark.asyncio
    async def test_slides_are_rendered_by_index_not_list_order(
        self, executor, repository
    ):
        slideshow = make_slideshow(status=SlideshowStatus.QUEUED)
        slideshow.slides.reverse()
        repository.put(slideshow)
        seen = []

        def recording(ss, slide):
            seen.append(slide.index)
            return "canvas"

        await executor.execute("ss-1", recording)
        assert seen == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_failing_slide_is_skipped(self, executor, repository, queued_slideshow):
        def flaky(slideshow, slide):
            if slide.index == 1:
                raise ValueError("bad font")
            return "canvas"

        progress = []
        result = await executor.execute("ss-1", flaky, on_progress=progress.append)

        assert result.status == SlideshowStatus.COMPLETED
        assert result.frame_paths == [
            frame_path("user-1", "ss-1", "ss-1-slide-0"),
            frame_path("user-1", "ss-1", "ss-1-slide-2"),
        ]
        assert progress[2].stage == STAGE_SLIDE_SKIPPED
        assert progress[2].index == 1

    @pytest.mark.asyncio
    async def test_missing_canvas_is_skipped(self, executor, queued_slideshow):
        result = await executor.execute(
            "ss-1", lambda ss, slide: None if slide.index == 0 else "canvas"
        )
        assert len(result.frame_paths) == 2

    @pytest.mark.asyncio
    async def test_async_compositor_is_awaited(self, executor, queued_slideshow):
        async def async_compositor(slideshow, slide):
            return "canvas"

        result = await executor.execute("ss-1", async_compositor)
        assert len(result.frame_paths) == 3

    @pytest.mark.asyncio
    async def test_encode_and_upload_failures_skip_the_slide(
        self, repository, usage, queued_slideshow
    ):
        storage = FailingUploadStorage([frame_path("user-1", "ss-1", "ss-1-slide-2")])

        def picky_encode(canvas):
            if canvas == "canvas-0":
                raise OSError("encoder crashed")
            return b"png"

        executor = RenderExecutor(repository, storage, usage, picky_encode)
        result = await executor.execute("ss-1", compositor)

        assert result.status == SlideshowStatus.COMPLETED
        assert result.frame_paths == [frame_path("user-1", "ss-1", "ss-1-slide-1")]

    @pytest.mark.asyncio
    async def test_fatal_failure_rolls_back_to_draft(
        self, executor, repository, queued_slideshow
    ):
        repository.fail_save_for = SlideshowStatus.COMPLETED
        progress = []

        with pytest.raises(ConnectionError):
            await executor.execute("ss-1", compositor, on_progress=progress.append)

        assert repository.peek("ss-1").status == SlideshowStatus.DRAFT
        assert progress[-1].stage == STAGE_FAILED

    @pytest.mark.asyncio
    async def test_missing_slideshow(self, executor, repository):
        with pytest.raises(SlideshowNotFoundError):
            await executor.execute("nope", compositor)
        assert repository.saved_states == []

    @pytest.mark.asyncio
    async def test_usage_failure_does_not_fail_render(
        self, repository, storage, queued_slideshow
    ):
        executor = RenderExecutor(repository, storage, FakeUsageCounter(fail=True), encode)
        result = await executor.execute("ss-1", compositor)
        assert result.status == SlideshowStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_listener_failure_does_not_fail_render(self, executor, queued_slideshow):
        def broken_listener(progress):
            raise RuntimeError("socket closed")

        result = await executor.execute("ss-1", compositor, on_progress=broken_listener)
        assert result.status == SlideshowStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_rerender_starts_from_empty_paths(self, executor, repository):
        slideshow = make_slideshow(status=SlideshowStatus.QUEUED)
        slideshow.frame_paths = ["user-1/ss-1/old.png"]
        repository.put(slideshow)

        result = await executor.execute("ss-1", compositor)

        assert repository.saved_states[0] == (SlideshowStatus.RENDERING, [])
        assert "user-1/ss-1/old.png" not in result.frame_paths
