from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config import settings

log = logging.getLogger("rentsafe.request")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Emits one http_request log line per request with:
      method, path, status_code, latency_ms, user_email

    request_id is added by JsonFormatter from the ContextVar that
    RequestIDMiddleware sets, so that middleware must wrap this one.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        t0 = time.perf_counter()

        # Principal is resolved inside handlers; the dev header is good enough here.
        user_email = request.headers.get(settings.dev_header_user_email)

        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            latency_ms = int((time.perf_counter() - t0) * 1000)
            log.info(
                "http_request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "query": str(request.url.query) if request.url.query else "",
                    "status_code": status_code,
                    "latency_ms": latency_ms,
                    "user_email": user_email,
                },
            )
