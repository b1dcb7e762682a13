# legalchat/observability/middleware.py
from __future__ import annotations

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from legalchat.observability.context import request_id_ctx
from legalchat.observability.metrics import inc_counter, observe_ms


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_ctx.set(rid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = rid
            inc_counter("http_requests_total", method=request.method, status=response.status_code)
            return response
        finally:
            observe_ms("http_request_duration", (time.perf_counter() - started) * 1000, method=request.method)
            request_id_ctx.reset(token)
