# backend/agrimetrics/main.py

# FORCE logger module import so handlers attach
from agrimetrics.core.logger import logger

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agrimetrics import __version__
from agrimetrics.core.config import settings
from agrimetrics.core.database import engine, Base
from agrimetrics.core.exceptions import register_exception_handlers
from agrimetrics.core.request_middleware import RequestLoggingMiddleware
from agrimetrics.core.error_middleware import ExceptionLoggingMiddleware

# registers every table on Base.metadata
import agrimetrics.models  # noqa: F401
from agrimetrics.api import analytics

# ---------------------------------------------------
# Create FastAPI instance FIRST
# ---------------------------------------------------
app = FastAPI(title="Agrimetrics Analytics API", version=__version__)


# ---------------------------------------------------
# CORS
# ---------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------
# Logging middlewares
# ---------------------------------------------------
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionLoggingMiddleware)

register_exception_handlers(app)


# ---------------------------------------------------
# Include Routers
# ---------------------------------------------------
app.include_router(analytics.router)


@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Analytics backend started with structured JSON logging")


# ---------------------------------------------------
# Health
# ---------------------------------------------------
@app.get("/health")
async def health_check():
    return {"status": "ok", "service": settings.SERVICE_NAME}
