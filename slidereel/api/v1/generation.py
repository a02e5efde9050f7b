"""
Slideshow generation endpoint (server-sent events).
"""

from typing import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from slidereel.api.schemas import GenerateSlideshowRequest
from slidereel.application.generation.orchestrator import (
    GenerationContext,
    GenerationOrchestrator,
    GenerationRequest,
)
from slidereel.infra.config.dependencies import CurrentUserId, OrchestratorDep
from slidereel.infra.config.logging_config import bind_context, get_logger

router = APIRouter()
log = get_logger("api.generation")

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _sse_stream(
    orchestrator: GenerationOrchestrator, context: GenerationContext
) -> AsyncIterator[str]:
    async for event in orchestrator.run(context):
        yield event.to_sse()


@router.post("/slideshows/generate")
async def generate_slideshow(
    request: GenerateSlideshowRequest,
    current_user_id: CurrentUserId,
    orchestrator: OrchestratorDep,
) -> StreamingResponse:
    """
    Stream a generated slideshow document.

    Request problems (missing or unknown product, no background images) are
    answered with a 4xx before the stream opens. After that, every outcome is
    an event: ``thought`` chunks, then ``json`` or an ``ERROR:`` line.
    """
    bind_context(user_id=current_user_id)
    log.info(
        "generation.request",
        product_id=request.product_id,
        prompt_len=len(request.prompt),
        collections=len(request.selected_collection_ids or []),
    )
    context = await orchestrator.prepare(
        current_user_id,
        GenerationRequest(
            product_id=request.product_id,
            prompt=request.prompt,
            selected_image_ids=request.selected_image_ids,
            selected_collection_ids=request.selected_collection_ids,
            aspect_ratio=request.aspect_ratio,
        ),
    )
    return StreamingResponse(
        _sse_stream(orchestrator, context),
        media_type="text/event-stream; charset=utf-8",
        headers=SSE_HEADERS,
    )
