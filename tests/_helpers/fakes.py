"""Fake port implementations for testing."""

import copy
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Type

from langchain_core.messages import BaseMessage
from langchain_core.tools import BaseTool
from pydantic import BaseModel

from slidereel.application.ports import (
    ImageCatalogPort,
    ProductContext,
    SlideshowRepositoryPort,
    StructuredGenerationPort,
    ToolStreamingPort,
    UsageCounterPort,
)
from slidereel.domain.entities import Slide, Slideshow, TextOverlay
from slidereel.domain.references import ImageCandidate
from slidereel.domain.slideshow_status import SlideshowStatus


class FakeSlideshowRepository(SlideshowRepositoryPort):
    """
    In-memory fake of the slideshow repository.

    Entities are copied on the way in and out so tests observe what was
    persisted, not the caller's live object. Every ``save_render_state`` call
    is recorded in ``saved_states`` as ``(status, frame_paths)``.
    """

    def __init__(self) -> None:
        self._slideshows: Dict[str, Slideshow] = {}
        self.saved_states: List[tuple] = []
        self.status_updates: List[tuple] = []
        self.fail_update_status = False
        self.fail_save_for: Optional[SlideshowStatus] = None

    def put(self, slideshow: Slideshow) -> Slideshow:
        self._slideshows[slideshow.id] = copy.deepcopy(slideshow)
        return slideshow

    def peek(self, slideshow_id: str) -> Optional[Slideshow]:
        return self._slideshows.get(slideshow_id)

    async def create(self, slideshow: Slideshow) -> Slideshow:
        return self.put(slideshow)

    async def get_by_id(self, slideshow_id: str) -> Optional[Slideshow]:
        slideshow = self._slideshows.get(slideshow_id)
        return copy.deepcopy(slideshow) if slideshow else None

    async def list_by_status(self, statuses: Sequence[SlideshowStatus]) -> List[Slideshow]:
        return [copy.deepcopy(s) for s in self._slideshows.values() if s.status in statuses]

    async def update_status(self, slideshow_id: str, status: SlideshowStatus) -> None:
        if self.fail_update_status:
            raise ConnectionError("database unavailable")
        self.status_updates.append((slideshow_id, status))
        if slideshow_id in self._slideshows:
            self._slideshows[slideshow_id].status = status

    async def save_render_state(self, slideshow: Slideshow) -> None:
        if self.fail_save_for is not None and slideshow.status == self.fail_save_for:
            raise ConnectionError("database unavailable")
        self.saved_states.append((slideshow.status, list(slideshow.frame_paths)))
        stored = self._slideshows[slideshow.id]
        stored.status = slideshow.status
        stored.frame_paths = list(slideshow.frame_paths)

    async def get_slide(self, slide_id: str) -> Optional[Slide]:
        for slideshow in self._slideshows.values():
            for slide in slideshow.slides:
                if slide.id == slide_id:
                    return copy.deepcopy(slide)
        return None

    async def add_slide(self, slide: Slide) -> Slide:
        self._slideshows[slide.slideshow_id].slides.append(copy.deepcopy(slide))
        return slide

    async def delete_slide(self, slideshow: Slideshow, slide_id: str) -> None:
        self.put(slideshow)

    async def replace_texts(self, slide_id: str, texts: List[TextOverlay]) -> None:
        for slideshow in self._slideshows.values():
            for slide in slideshow.slides:
                if slide.id == slide_id:
                    slide.texts = copy.deepcopy(texts)

    async def update_background(self, slide_id: str, image_id: Optional[str]) -> None:
        for slideshow in self._slideshows.values():
            for slide in slideshow.slides:
                if slide.id == slide_id:
                    slide.background_image_id = image_id


class FakeCatalog(ImageCatalogPort):
    """In-memory catalog of one user's products, images and examples."""

    def __init__(
        self,
        products: Optional[Dict[str, ProductContext]] = None,
        product_images: Optional[List[ImageCandidate]] = None,
        collections: Optional[Dict[str, List[ImageCandidate]]] = None,
        examples: Optional[List[Dict[str, Any]]] = None,
        owner_id: str = "user-1",
    ) -> None:
        self.products = products or {}
        self.product_images = product_images or []
        self.collections = collections or {}
        self.examples = examples or []
        self.owner_id = owner_id
        self.example_queries: List[tuple] = []

    async def get_product(self, user_id: str, product_id: str) -> Optional[ProductContext]:
        if user_id != self.owner_id:
            return None
        return self.products.get(product_id)

    async def list_product_images(
        self, user_id: str, product_id: str, image_ids: Optional[Sequence[str]] = None
    ) -> List[ImageCandidate]:
        if image_ids:
            return [c for c in self.product_images if c.id in image_ids]
        return list(self.product_images)

    async def list_collection_images(self, collection_ids: Sequence[str]) -> List[ImageCandidate]:
        images: List[ImageCandidate] = []
        for collection_id in collection_ids:
            images.extend(self.collections.get(collection_id, []))
        return images

    async def list_example_summaries(
        self,
        industries: Sequence[str] = (),
        product_types: Sequence[str] = (),
        limit: int = 15,
    ) -> List[Dict[str, Any]]:
        self.example_queries.append((tuple(industries), tuple(product_types), limit))
        return self.examples[:limit]

    async def get_example_frames(self, example_id: str) -> Optional[Dict[str, Any]]:
        for example in self.examples:
            if example["id"] == example_id:
                return example
        return None


class FakeUsageCounter(UsageCounterPort):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple] = []

    async def increment(self, user_id: str, metric: str, amount: int = 1) -> int:
        if self.fail:
            raise ConnectionError("usage store unavailable")
        self.calls.append((user_id, metric, amount))
        return len(self.calls)


class FakeLLM(StructuredGenerationPort, ToolStreamingPort):
    """Scripted planner and generator."""

    def __init__(
        self,
        document: Any = None,
        chunks: Sequence[str] = ("Planning...",),
        generate_error: Optional[Exception] = None,
    ) -> None:
        self.document = document
        self.chunks = list(chunks)
        self.generate_error = generate_error
        self.tool_names: List[str] = []
        self.response_models: List[Type[BaseModel]] = []

    async def stream_with_tools(
        self,
        messages: List[BaseMessage],
        tools: Sequence[BaseTool],
        max_rounds: int,
    ) -> AsyncIterator[str]:
        self.tool_names = [tool.name for tool in tools]
        for chunk in self.chunks:
            yield chunk

    async def generate_object(
        self,
        messages: List[BaseMessage],
        response_model: Type[BaseModel],
        max_retries: int = 2,
    ) -> Dict[str, Any]:
        self.response_models.append(response_model)
        if self.generate_error is not None:
            raise self.generate_error
        return copy.deepcopy(self.document)


def make_slideshow(
    slideshow_id: str = "ss-1",
    user_id: str = "user-1",
    slide_count: int = 3,
    status: SlideshowStatus = SlideshowStatus.DRAFT,
    aspect_ratio: str = "9:16",
) -> Slideshow:
    slideshow = Slideshow(
        id=slideshow_id, user_id=user_id, aspect_ratio=aspect_ratio, status=status
    )
    for index in range(slide_count):
        slideshow.slides.append(
            Slide(slideshow_id=slideshow_id, index=index, id=f"{slideshow_id}-slide-{index}")
        )
    return slideshow


def candidate(image_id: str, owner_id: Optional[str] = None, **kwargs) -> ImageCandidate:
    return ImageCandidate(
        id=image_id,
        storage_path=f"images/{image_id}.jpg",
        owner_id=owner_id,
        **kwargs,
    )
