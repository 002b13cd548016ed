from typing import List
from pydantic_settings import BaseSettings
from pydantic import validator


class Settings(BaseSettings):
    PROJECT_NAME: str = "Chambers Practice Manager"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Client, case, calendar and billing management for law firms"
    API_V1_STR: str = "/api/v1"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",  # Web dashboard development
        "http://localhost:8000",  # Backend development
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Document store
    STORE_BACKEND: str = "sql"  # "sql" or "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./chambers.db"

    # Database connection pool settings (ignored for sqlite)
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    SQL_ECHO: bool = False  # Set to True to log SQL queries (development only)

    # Identity
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"
    DEFAULT_ROLE: str = "lawyer"
    ADMIN_EMAILS: List[str] = []

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = ""  # Empty disables file logging

    # Performance
    ENABLE_RESPONSE_COMPRESSION: bool = True

    # Views
    CURRENCY: str = "KES"
    UPCOMING_APPOINTMENTS_LIMIT: int = 5
    RECENT_FILES_LIMIT: int = 5
    RECENT_ACTIVITY_LIMIT: int = 25
    NOTIFICATIONS_LIMIT: int = 20

    # Populate an empty store with sample records on startup
    SEED_SAMPLE_DATA: bool = False

    @validator("BACKEND_CORS_ORIGINS", "ADMIN_EMAILS", pre=True)
    def assemble_list(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @validator("STORE_BACKEND")
    def validate_store_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("sql", "memory"):
            raise ValueError(f"Unsupported STORE_BACKEND: {v}")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
