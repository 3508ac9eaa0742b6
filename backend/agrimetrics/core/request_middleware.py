# backend/agrimetrics/core/request_middleware.py

import logging
import time

from agrimetrics.core.logger import logger
from agrimetrics.core.utils_logging import generate_request_id, request_id_from_headers


class RequestLoggingMiddleware:
    """
    ASGI middleware: one request id per HTTP request (reused from an
    incoming X-Request-ID when well-formed), echoed in the response
    headers and attached to the start / completion log lines.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        request_id = request_id_from_headers(scope.get("headers", [])) or generate_request_id()
        scope["request_id"] = request_id
        scope.setdefault("state", {})["request_id"] = request_id

        base = {
            "request_id": request_id,
            "method": scope.get("method", ""),
            "path": scope.get("path", ""),
        }
        logger.info("Incoming request", extra=base)

        start = time.perf_counter()
        status = {"code": None}

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                status["code"] = message.get("status", 0)
                headers = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if name.lower() != b"x-request-id"
                ]
                headers.append((b"x-request-id", request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            code = status["code"] or 500
            level = logging.WARNING if code >= 500 else logging.INFO
            logger.log(
                level,
                "Request completed",
                extra={
                    **base,
                    "status_code": code,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
