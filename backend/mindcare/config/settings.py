import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AnyUrl, Field
from typing import List

env = os.getenv("APP_ENV", "development")
env_file = f".env.{env}"

class Settings(BaseSettings):
    database_url: AnyUrl
    # CORS origins can be overridden via CORS_ORIGINS env var (JSON list or comma-separated)
    cors_origins: List[str] = Field(default=["http://localhost:3000"])
    # Session token verification (tokens are issued by the auth provider)
    secret_key: str
    algorithm: str = "HS256"

    log_level: str = "INFO"

    # Scheduling policy
    booking_min_notice_hours: int = 24
    cancellation_min_notice_hours: int = 24

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 50

    model_config = SettingsConfigDict(
        env_file=env_file,
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
