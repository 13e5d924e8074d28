"""
lingala_api.observability.middleware

Pure ASGI middleware that scopes structlog context to one HTTP request.

Responsibilities:
- Accept an inbound `x-request-id` (or mint one) and echo it on the response.
- Bind request id, method and route path into contextvars for every log line.
- Emit a single `request_completed` access line with status, latency and the
  principal kind the auth layer resolved.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from lingala_api.observability.logging import get_logger

log = get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"
_MAX_REQUEST_ID_LEN = 128


def _request_id(scope: Scope) -> str:
    inbound = Headers(scope=scope).get(REQUEST_ID_HEADER)
    if inbound and len(inbound) <= _MAX_REQUEST_ID_LEN:
        return inbound
    return uuid.uuid4().hex


class RequestContextMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _request_id(scope)
        status_code = 500
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=scope["method"],
            path=scope["path"],
        )

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        started = time.perf_counter()
        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            # principal_kind is bound by the auth dependencies when a route resolves one.
            bound = structlog.contextvars.get_contextvars()
            log.info(
                "request_completed",
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                principal_kind=bound.get("principal_kind", "anonymous"),
            )
            structlog.contextvars.clear_contextvars()
