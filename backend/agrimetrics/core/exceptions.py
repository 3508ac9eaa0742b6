# backend/agrimetrics/core/exceptions.py

"""
Domain errors raised by the analytics core and their HTTP rendering.

Every error maps to a fixed status code. The FastAPI handler renders them as
JSON:API error objects; the original cause of an ``InternalError`` is logged
where it is raised and never echoed to the caller.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AnalyticsError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(AnalyticsError):
    status_code = 400


class AuthenticationError(AnalyticsError):
    status_code = 401


class AuthorizationError(AnalyticsError):
    status_code = 403


class NotFoundError(AnalyticsError):
    status_code = 404


class InternalError(AnalyticsError):
    status_code = 500


def error_body(exc: AnalyticsError) -> dict:
    return {
        "errors": [
            {
                "status": str(exc.status_code),
                "title": type(exc).__name__,
                "detail": exc.message,
            }
        ]
    }


async def analytics_error_handler(request: Request, exc: AnalyticsError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=error_body(exc), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # pydantic 422s are reported as 400
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("query", "body"))
    detail = f"{location}: {first.get('msg', 'invalid input')}" if location else first.get("msg", "Invalid input")
    return JSONResponse(status_code=400, content=error_body(ValidationError(detail)))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AnalyticsError, analytics_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
