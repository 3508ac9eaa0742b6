# backend/agrimetrics/core/error_middleware.py

from agrimetrics.core.logger import logger


class ExceptionLoggingMiddleware:
    """
    Logs exceptions that escaped every handler (domain errors are rendered
    before they get here) with the stack trace, then re-raises so Starlette
    answers with a plain 500.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            logger.exception(
                "Unhandled exception in request",
                extra={
                    "request_id": scope.get("request_id"),
                    "method": scope.get("method"),
                    "path": scope.get("path"),
                    "error": f"{type(exc).__name__}: {exc}",
                },
            )
            raise
