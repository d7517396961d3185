"""
Application configuration using Pydantic Settings.

Loads environment variables and provides typed configuration access.
"""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "DocDesk Document Management"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Database - SQLite by default for easy local dev
    DATABASE_URL: str = os.environ.get(
        "DATABASE_URL",
        "sqlite:///./data/docdesk.db",
    )

    # JWT Authentication
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # File storage
    UPLOAD_DIR: str = "./data/uploads"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10 MB
    ALLOWED_CONTENT_TYPES: list[str] = [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/gif",
    ]

    # HTTP
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    RATE_LIMIT_ENABLED: bool = True

    # Calendar day boundaries for "uploaded today" when the caller sends no tz
    DEFAULT_TIMEZONE: str = "UTC"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
