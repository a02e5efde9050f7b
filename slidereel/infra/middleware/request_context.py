"""
ASGI middleware that gives every HTTP request and websocket a request id.

Written against raw ASGI rather than ``BaseHTTPMiddleware`` so it also covers
the render progress websocket and does not buffer the generation SSE stream.
"""

from __future__ import annotations

import time
from uuid import uuid4

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from slidereel.infra.config.logging_config import bind_context, clear_context, get_logger

REQUEST_ID_HEADER = "x-request-id"


class RequestContextMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app
        self._log = get_logger("http")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(REQUEST_ID_HEADER) or str(uuid4())
        client = scope.get("client")
        bind_context(request_id=request_id, path=scope["path"], kind=scope["type"])
        self._log.info("request.start", method=scope.get("method"), client_ip=client[0] if client else None)
        started = time.monotonic()
        status_code = None

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message).append("X-Request-ID", request_id)
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        except Exception as exc:
            self._log.exception("request.error", error=str(exc))
            raise
        finally:
            self._log.info(
                "request.end",
                status_code=status_code,
                duration_ms=round((time.monotonic() - started) * 1000, 1),
            )
            clear_context()
