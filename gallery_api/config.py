"""
Configuration management for the gallery API.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Gallery API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for the painting catalog, exhibitions and admin console"

    LOG_LEVEL: str = "INFO"

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5500",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5500",
        "http://127.0.0.1:8000",
    ]

    # Database Configuration
    # postgresql+asyncpg://... in production, SQLite for local development
    DATABASE_URL: str = "sqlite+aiosqlite:///./gallery.db"
    # Production schemas are managed by alembic; this only helps local SQLite runs
    CREATE_TABLES_ON_STARTUP: bool = True

    # Admin credentials
    # ADMIN_PASSWORD_HASH is a bcrypt hash, see generate_password_hash.py
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD_HASH: str = ""

    # JWT Configuration
    # SECRET_KEY should be a long random string (e.g., generated with: openssl rand -hex 32)
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production-use-openssl-rand-hex-32"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    AUTH_COOKIE_NAME: str = "gallery_token"

    # Gallery rules
    FEATURED_LIMIT: int = 3
    DEFAULT_PER_PAGE: int = 6
    MAX_PER_PAGE: int = 50

    # Image storage: "local" writes under UPLOAD_DIR, "cloudinary" uses the CDN
    IMAGE_STORAGE_BACKEND: str = "local"
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024

    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    RATE_LIMIT_ENABLED: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
