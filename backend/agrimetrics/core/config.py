# backend/agrimetrics/core/config.py

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    SERVICE_NAME: str = "agrimetrics-backend"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./agrimetrics.db"

    # Auth
    SECRET_KEY: str = "super-secret-key-change-in-prod"
    ALGORITHM: str = "HS256"

    # Cache (in-process store when REDIS_URL is unset)
    REDIS_URL: Optional[str] = None
    ANALYTICS_CACHE_TTL: int = 300
    INSIGHTS_CACHE_TTL: int = 600

    # Insight service (rule-based local generator when unset)
    INSIGHT_SERVICE_URL: Optional[str] = None
    INSIGHT_SERVICE_API_KEY: Optional[str] = None
    INSIGHT_SERVICE_TIMEOUT: float = 10.0

    # Export / report jobs
    DOWNLOAD_BASE_URL: str = "http://localhost:8000"

    # Logging
    LOG_DIR: str = "logs"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]


settings = Settings()
