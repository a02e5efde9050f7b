"""
Two-phase slideshow generation.

``prepare`` does everything that can be rejected up front (missing product,
empty background pool) so the HTTP layer can answer with a 4xx before any
stream starts. ``run`` then yields the typed event stream: planning thoughts,
followed by exactly one terminal ``JsonEvent`` or ``ErrorEvent``.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from slidereel.application.generation.events import (
    JSON_READY_MARKER,
    ErrorEvent,
    GenerationEvent,
    JsonEvent,
    ThoughtEvent,
    ThoughtLineEvent,
)
from slidereel.application.generation.prompts import SlideshowPrompts, image_context
from slidereel.application.generation.repair import repair_document
from slidereel.application.generation.schema_builder import (
    StructuralContract,
    build_contract,
)
from slidereel.application.generation.tools import build_planning_tools
from slidereel.application.ports import (
    ImageCatalogPort,
    ProductContext,
    StructuredGenerationPort,
    ToolStreamingPort,
)
from slidereel.domain.exceptions import (
    DomainError,
    MissingFieldError,
    ProductNotFoundError,
)
from slidereel.domain.layout import (
    SAFE_MARGIN,
    canvas_size_for_aspect_ratio,
    line_budget_overruns,
)
from slidereel.domain.references import ImageCandidate, ReferenceMap, materialize, resolve
from slidereel.infra.config.logging_config import get_logger
from slidereel.infra.metrics import (
    GENERATIONS_FAILED,
    GENERATIONS_STARTED,
    TEXT_POSITION_ADJUSTMENTS,
    observe_phase,
)

SLIDE_COUNT_PATTERN = re.compile(r"(\d+)[\s-]*slide", re.IGNORECASE)
DEFAULT_SLIDE_COUNT = 3
DEFAULT_CANVAS_WIDTH = 300


def extract_slide_count(
    prompt: Optional[str],
    default: int = DEFAULT_SLIDE_COUNT,
    max_slides: int = 20,
) -> int:
    """Slide count requested in free text ("5 slides", "a 4-slide post")."""
    match = SLIDE_COUNT_PATTERN.search(prompt or "")
    count = int(match.group(1)) if match else default
    return max(1, min(max_slides, count))


@dataclass
class GenerationRequest:
    product_id: Optional[str]
    prompt: str = ""
    selected_image_ids: Optional[List[str]] = None
    selected_collection_ids: Optional[List[str]] = None
    aspect_ratio: Optional[str] = None


@dataclass
class GenerationContext:
    user_id: str
    request: GenerationRequest
    product: ProductContext
    ref_map: ReferenceMap
    contract: StructuralContract
    examples: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def slide_count(self) -> int:
        return self.contract.slide_count


class GenerationOrchestrator:
    """Runs planning then constrained generation for one request at a time."""

    def __init__(
        self,
        catalog: ImageCatalogPort,
        planner: ToolStreamingPort,
        generator: StructuredGenerationPort,
        url_for: Callable[[ImageCandidate], str],
        canvas_width: int = DEFAULT_CANVAS_WIDTH,
        margin: int = SAFE_MARGIN,
        max_tool_rounds: int = 6,
        max_retries: int = 2,
        max_slides: int = 20,
        default_slides: int = DEFAULT_SLIDE_COUNT,
    ):
        self.catalog = catalog
        self.planner = planner
        self.generator = generator
        self.url_for = url_for
        self.canvas_width = canvas_width
        self.margin = margin
        self.max_tool_rounds = max_tool_rounds
        self.max_retries = max_retries
        self.max_slides = max_slides
        self.default_slides = default_slides
        self._log = get_logger("generation.orchestrator")

    async def prepare(self, user_id: str, request: GenerationRequest) -> GenerationContext:
        """
        Load everything the request needs and build its contract.

        Raises:
            MissingFieldError: If no product id was given
            ProductNotFoundError: If the product does not belong to the user
            EmptyBackgroundPoolError: If no background candidates are available
        """
        if not request.product_id or not isinstance(request.product_id, str):
            raise MissingFieldError("product_id")

        product = await self.catalog.get_product(user_id, request.product_id)
        if product is None:
            raise ProductNotFoundError(request.product_id)

        overlay_pool = await self.catalog.list_product_images(
            user_id, request.product_id, request.selected_image_ids or None
        )
        background_pool = (
            await self.catalog.list_collection_images(request.selected_collection_ids)
            if request.selected_collection_ids
            else []
        )
        ref_map = resolve(background_pool, overlay_pool)

        width, height = canvas_size_for_aspect_ratio(request.aspect_ratio, self.canvas_width)
        slide_count = extract_slide_count(
            request.prompt, self.default_slides, self.max_slides
        )
        contract = build_contract(
            ref_map.background_tokens,
            ref_map.overlay_tokens,
            slide_count,
            width,
            height,
            self.margin,
        )

        terms = product.classification_terms()
        if terms:
            examples = await self.catalog.list_example_summaries(terms, terms)
        else:
            examples = await self.catalog.list_example_summaries(limit=20)

        self._log.info(
            "generation.prepared",
            user_id=user_id,
            product_id=product.id,
            backgrounds=len(ref_map.background_tokens),
            overlays=len(ref_map.overlay_tokens),
            slide_count=slide_count,
            canvas=f"{width}x{height}",
            examples=len(examples),
        )
        return GenerationContext(
            user_id=user_id,
            request=request,
            product=product,
            ref_map=ref_map,
            contract=contract,
            examples=examples,
        )

    def _planning_messages(self, context: GenerationContext) -> List[BaseMessage]:
        briefs = image_context(context.ref_map)
        return [
            SystemMessage(content=SlideshowPrompts.get_planning_system_prompt()),
            HumanMessage(
                content=SlideshowPrompts.get_planning_user_prompt(
                    context.product,
                    context.request.prompt or "",
                    briefs,
                    context.examples,
                    context.slide_count,
                )
            ),
        ]

    def _generation_messages(self, context: GenerationContext) -> List[BaseMessage]:
        briefs = image_context(context.ref_map)
        return [
            SystemMessage(
                content=SlideshowPrompts.get_generation_system_prompt(
                    context.contract.canvas_width, context.contract.canvas_height
                )
            ),
            HumanMessage(
                content=SlideshowPrompts.get_generation_user_prompt(
                    context.product,
                    context.request.prompt or "",
                    briefs,
                    context.examples,
                    context.slide_count,
                )
            ),
        ]

    async def run(self, context: GenerationContext) -> AsyncIterator[GenerationEvent]:
        """Yield the event stream for a prepared request."""
        GENERATIONS_STARTED.inc()
        stage = "planning"
        try:
            started = time.monotonic()
            tools = build_planning_tools(self.catalog, context.ref_map, context.product)
            async for chunk in self.planner.stream_with_tools(
                self._planning_messages(context), tools, self.max_tool_rounds
            ):
                if chunk:
                    yield ThoughtEvent(chunk)
            observe_phase("planning", time.monotonic() - started)

            stage = "generation"
            started = time.monotonic()
            raw = await self.generator.generate_object(
                self._generation_messages(context),
                context.contract.model,
                max_retries=self.max_retries,
            )
            observe_phase("generation", time.monotonic() - started)

            stage = "repair"
            result = repair_document(raw, context.contract)
            if result.adjustments:
                TEXT_POSITION_ADJUSTMENTS.inc(result.adjustments)
            overruns = sum(
                line_budget_overruns(text["text"], text["size"])
                for slide in result.document["slides"]
                for text in slide["texts"]
            )
            document = materialize(result.document, context.ref_map, self.url_for)

            self._log.info(
                "generation.json.ready",
                slides=len(document["slides"]),
                strict_valid=result.strict_valid,
                repairs=result.repairs,
                adjustments=result.adjustments,
                line_overruns=overruns,
            )
            if result.adjustments:
                yield ThoughtLineEvent(
                    f"Adjusted {result.adjustments} text position(s) to stay inside the safe area"
                )
            yield ThoughtLineEvent(JSON_READY_MARKER)
            yield JsonEvent(document)
        except Exception as exc:
            GENERATIONS_FAILED.labels(stage=stage).inc()
            self._log.error(
                "generation.failed",
                stage=stage,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            if isinstance(exc, DomainError):
                yield ErrorEvent(exc.message, exc.code)
            else:
                yield ErrorEvent(str(exc) or type(exc).__name__)
