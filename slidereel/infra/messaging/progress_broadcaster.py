"""
WebSocket broadcaster for render progress.
"""

import json
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from fastapi import WebSocket

from slidereel.application.rendering.progress import RenderProgress
from slidereel.infra.config.logging_config import get_logger


def render_channel(slideshow_id: str) -> str:
    return f"render:{slideshow_id}"


class RenderProgressBroadcaster:
    """
    Fans render progress out to websockets connected to a slideshow.

    Every message is also published on Redis pub/sub so other processes can
    relay progress for renders they do not run.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self.redis_client = redis_client
        self._connections: Dict[str, List[WebSocket]] = {}  # slideshow_id -> [websockets]
        self._log = get_logger("infra.websocket")

    async def connect(self, slideshow_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.setdefault(slideshow_id, []).append(websocket)
        self._log.info("ws.connect.slideshow", slideshow_id=slideshow_id)

    async def disconnect(self, slideshow_id: str, websocket: WebSocket) -> None:
        connections = self._connections.get(slideshow_id)
        if connections and websocket in connections:
            connections.remove(websocket)
            if not connections:
                del self._connections[slideshow_id]
        self._log.info("ws.disconnect.slideshow", slideshow_id=slideshow_id)

    def connection_count(self, slideshow_id: str) -> int:
        return len(self._connections.get(slideshow_id, []))

    async def broadcast(self, slideshow_id: str, message: Dict[str, Any]) -> None:
        """Send to local websockets, dropping dead ones, then publish to Redis."""
        message_str = json.dumps(message)

        disconnected = []
        for websocket in list(self._connections.get(slideshow_id, [])):
            try:
                await websocket.send_text(message_str)
            except Exception:
                disconnected.append(websocket)
        for websocket in disconnected:
            await self.disconnect(slideshow_id, websocket)

        if self.redis_client is not None:
            await self.redis_client.publish(render_channel(slideshow_id), message_str)

    async def __call__(self, progress: RenderProgress) -> None:
        """Use the broadcaster directly as a render progress listener."""
        await self.broadcast(progress.slideshow_id, {"type": "render_progress", **progress.to_dict()})
