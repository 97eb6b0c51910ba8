"""请求 ID 中间件：把 X-Request-ID 写入日志上下文。

请求头带有 X-Request-ID 时沿用，否则生成 UUID4；日志通过 ContextFilter 输出该值。
"""

from __future__ import annotations

import uuid

from starlette.types import ASGIApp, Receive, Scope, Send

from .logger import set_request_id


class RequestIdMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:  # pragma: no cover
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return
        rid = None
        for key, value in scope.get("headers", []):
            if key.decode("latin-1").lower() == "x-request-id":
                rid = value.decode("latin-1")
                break
        set_request_id(rid or str(uuid.uuid4()))
        try:
            await self.app(scope, receive, send)
        finally:
            set_request_id(None)
