# backend/lessonbook/config.py
from typing import Dict, List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # DB URL used by SQLAlchemy. Postgres in production, sqlite works for dev.
    DATABASE_URL: str = "sqlite:///./lessonbook.db"

    # Redis for Celery/background tasks
    REDIS_URL: str = "redis://redis:6379/0"

    DEBUG: bool = False

    # Identity mapping for the verified caller email (see auth.py)
    ADMIN_EMAILS: List[str] = []
    TEACHER_EMAILS: Dict[str, str] = {}

    # Scheduling options
    DEFAULT_WEEKS: int = 12
    MAX_WEEKS: int = 52
    DEFAULT_TOTAL_SESSIONS: int = 8
    STORE_CAS_ATTEMPTS: int = 3

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
