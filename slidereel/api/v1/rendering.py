"""
Render endpoints: admission, status, live progress and the resume notice.
"""

import asyncio
import json
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from slidereel.api.schemas import (
    RenderAdmittedResponse,
    RenderStatusResponse,
    ResumeNoticeResponse,
)
from slidereel.application.rendering.render_queue import STATE_PENDING, RenderQueue
from slidereel.application.slideshow_editing import SlideshowEditingService
from slidereel.domain.exceptions import SlideshowNotFoundError
from slidereel.infra.config.dependencies import (
    BroadcasterDep,
    CompositorFactoryDep,
    CurrentUserId,
    EditingServiceDep,
    RenderQueueDep,
    ResumeServiceDep,
    get_editing_service,
    get_progress_broadcaster,
    get_render_queue,
    verify_websocket_token,
)
from slidereel.infra.config.logging_config import bind_context, get_logger
from slidereel.infra.messaging.progress_broadcaster import RenderProgressBroadcaster

router = APIRouter()
log = get_logger("api.rendering")

WS_KEEPALIVE_SECONDS = 30.0


@router.post(
    "/slideshows/{slideshow_id}/render",
    response_model=RenderAdmittedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def render_slideshow(
    slideshow_id: str,
    current_user_id: CurrentUserId,
    service: EditingServiceDep,
    queue: RenderQueueDep,
    compositor_factory: CompositorFactoryDep,
    broadcaster: BroadcasterDep,
) -> RenderAdmittedResponse:
    """
    Admit a render. Returns as soon as the job is queued; progress arrives on
    the websocket. A request for a slideshow that already has an outstanding
    render joins that render instead of starting a second one.
    """
    await service.get_for_user(current_user_id, slideshow_id)
    bind_context(slideshow_id=slideshow_id)

    coalesced = queue.state_of(slideshow_id) is not None
    await queue.submit(slideshow_id, compositor_factory(slideshow_id), broadcaster)
    log.info("render.request", coalesced=coalesced, queue_depth=queue.depth)
    return RenderAdmittedResponse(
        slideshow_id=slideshow_id,
        status=queue.state_of(slideshow_id) or STATE_PENDING,
        coalesced=coalesced,
    )


@router.get("/slideshows/{slideshow_id}/render", response_model=RenderStatusResponse)
async def get_render_status(
    slideshow_id: str,
    current_user_id: CurrentUserId,
    service: EditingServiceDep,
    queue: RenderQueueDep,
) -> RenderStatusResponse:
    slideshow = await service.get_for_user(current_user_id, slideshow_id)
    return RenderStatusResponse(
        slideshow_id=slideshow.id,
        status=slideshow.status.value,
        frame_paths=list(slideshow.frame_paths),
        slide_count=len(slideshow.slides),
        queue_state=queue.state_of(slideshow_id),
    )


@router.get("/renders/resume", response_model=ResumeNoticeResponse)
async def get_resume_notice(
    current_user_id: CurrentUserId, resume_service: ResumeServiceDep
) -> ResumeNoticeResponse:
    """Renders of the current user that were resumed after the last restart."""
    notice = resume_service.notice_for(current_user_id)
    if notice is None:
        return ResumeNoticeResponse()
    return ResumeNoticeResponse(**notice)


@router.websocket("/slideshows/{slideshow_id}/render/ws")
async def render_progress_ws(
    websocket: WebSocket,
    slideshow_id: str,
    token: Optional[str] = Query(None),
    service: SlideshowEditingService = Depends(get_editing_service),
    queue: RenderQueue = Depends(get_render_queue),
    broadcaster: RenderProgressBroadcaster = Depends(get_progress_broadcaster),
):
    """
    Live render progress for one slideshow.

    Query Parameters:
    - token: JWT authentication token

    Message Format:
    {
        "type": "connected|render_progress|ping|pong",
        "slideshow_id": "...",
        "completed": 1, "total": 3,
        "stage": "started|slide_rendered|slide_skipped|completed|failed"
    }
    """
    user_id = await verify_websocket_token(token)
    if not user_id:
        await websocket.close(code=4001, reason="Authentication required")
        return

    try:
        slideshow = await service.get_for_user(user_id, slideshow_id)
    except SlideshowNotFoundError:
        await websocket.close(code=4004, reason="Slideshow not found or access denied")
        return

    bind_context(user_id=user_id, slideshow_id=slideshow_id)
    await broadcaster.connect(slideshow_id, websocket)
    # Jobs admitted without this broadcaster (e.g. resumed at startup) still reach the socket.
    queue.add_listener(slideshow_id, broadcaster)
    try:
        await websocket.send_text(
            json.dumps(
                {
                    "type": "connected",
                    "slideshow_id": slideshow_id,
                    "status": slideshow.status.value,
                    "completed": len(slideshow.frame_paths),
                    "total": len(slideshow.slides),
                    "queue_state": queue.state_of(slideshow_id),
                }
            )
        )
        while True:
            try:
                data = await asyncio.wait_for(
                    websocket.receive_text(), timeout=WS_KEEPALIVE_SECONDS
                )
            except asyncio.TimeoutError:
                await websocket.send_text(json.dumps({"type": "ping"}))
                continue
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
    except WebSocketDisconnect:
        pass
    except Exception as e:
        log.exception("ws.render.error", error=str(e))
    finally:
        await broadcaster.disconnect(slideshow_id, websocket)
