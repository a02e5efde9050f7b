"""
Application ports - abstract interfaces for external dependencies.

These interfaces define the contracts that the application layer needs
from external systems, following the Dependency Inversion Principle.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Type

from langchain_core.messages import BaseMessage
from langchain_core.tools import BaseTool
from pydantic import BaseModel

from slidereel.domain.entities import Slide, Slideshow, TextOverlay
from slidereel.domain.references import ImageCandidate
from slidereel.domain.slideshow_status import SlideshowStatus


@dataclass
class ProductContext:
    """Product metadata fed to the generator."""

    id: str
    name: str = ""
    description: str = ""
    industry: List[str] = field(default_factory=list)
    product_type: List[str] = field(default_factory=list)
    matching_industries: List[str] = field(default_factory=list)
    matching_product_types: List[str] = field(default_factory=list)

    def classification_terms(self) -> List[str]:
        seen: Dict[str, None] = {}
        for term in (
            *self.industry,
            *self.product_type,
            *self.matching_industries,
            *self.matching_product_types,
        ):
            seen.setdefault(term, None)
        return list(seen)


class SlideshowRepositoryPort(ABC):
    """Abstract repository interface for Slideshow persistence."""

    @abstractmethod
    async def create(self, slideshow: Slideshow) -> Slideshow:
        """Create a slideshow together with its slides."""

    @abstractmethod
    async def get_by_id(self, slideshow_id: str) -> Optional[Slideshow]:
        """Get a slideshow with its ordered slides, texts and overlays."""

    @abstractmethod
    async def list_by_status(
        self, statuses: Sequence[SlideshowStatus]
    ) -> List[Slideshow]:
        """List slideshows (any user) currently in one of ``statuses``."""

    @abstractmethod
    async def update_status(self, slideshow_id: str, status: SlideshowStatus) -> None:
        """Persist a bare status transition."""

    @abstractmethod
    async def save_render_state(self, slideshow: Slideshow) -> None:
        """Persist status and frame paths of a slideshow."""

    @abstractmethod
    async def get_slide(self, slide_id: str) -> Optional[Slide]:
        """Get one slide with texts, overlays and resolved image paths."""

    @abstractmethod
    async def add_slide(self, slide: Slide) -> Slide:
        """Insert a new slide."""

    @abstractmethod
    async def delete_slide(self, slideshow: Slideshow, slide_id: str) -> None:
        """Delete a slide and persist the renumbered indices of ``slideshow``."""

    @abstractmethod
    async def replace_texts(self, slide_id: str, texts: List[TextOverlay]) -> None:
        """Replace all text overlays of a slide."""

    @abstractmethod
    async def update_background(
        self, slide_id: str, image_id: Optional[str]
    ) -> None:
        """Set or clear the background image of a slide."""


class ImageCatalogPort(ABC):
    """Read-only access to products, candidate images and example slideshows."""

    @abstractmethod
    async def get_product(self, user_id: str, product_id: str) -> Optional[ProductContext]:
        pass

    @abstractmethod
    async def list_product_images(
        self, user_id: str, product_id: str, image_ids: Optional[Sequence[str]] = None
    ) -> List[ImageCandidate]:
        pass

    @abstractmethod
    async def list_collection_images(
        self, collection_ids: Sequence[str]
    ) -> List[ImageCandidate]:
        pass

    @abstractmethod
    async def list_example_summaries(
        self,
        industries: Sequence[str] = (),
        product_types: Sequence[str] = (),
        limit: int = 15,
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_example_frames(self, example_id: str) -> Optional[Dict[str, Any]]:
        pass


class ObjectStoragePort(ABC):
    """Path-addressed blob store."""

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload ``data`` at ``path`` and return the stored path."""

    @abstractmethod
    async def download(self, path: str, bucket: Optional[str] = None) -> bytes:
        pass

    @abstractmethod
    async def list_prefix(self, prefix: str) -> List[str]:
        """Full paths of all objects under ``prefix``."""

    @abstractmethod
    async def remove(self, paths: Sequence[str]) -> None:
        pass


class UsageCounterPort(ABC):
    @abstractmethod
    async def increment(self, user_id: str, metric: str, amount: int = 1) -> int:
        """Increment a usage metric for the current period and return the total."""


class StructuredGenerationPort(ABC):
    """Structured generation returning a best-effort conforming object."""

    @abstractmethod
    async def generate_object(
        self,
        messages: List[BaseMessage],
        response_model: Type[BaseModel],
        max_retries: int = 2,
    ) -> Dict[str, Any]:
        """
        Return the raw object produced under ``response_model``.

        Raises:
            NoObjectGeneratedError: If no object was produced after retries
        """


class ToolStreamingPort(ABC):
    """Tool-augmented text streaming."""

    @abstractmethod
    def stream_with_tools(
        self,
        messages: List[BaseMessage],
        tools: Sequence[BaseTool],
        max_rounds: int,
    ) -> AsyncIterator[str]:
        """Yield text chunks while the model reasons and calls tools."""
