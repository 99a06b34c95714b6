"""
Service configuration, read from the environment and an optional .env file
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./rulequiz.db"

    # Redis (empty disables chart caching)
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "Rules Quiz"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Quiz session cookie
    QUIZ_SESSION_COOKIE_NAME: str = "quiz_session"
    QUIZ_SESSION_MAX_AGE_HOURS: int = 24
    QUIZ_SESSION_COOKIE_SECURE: bool = False  # local access over plain HTTP

    # Statistics
    RECENT_ATTEMPTS_LIMIT: int = 20
    QUESTION_PERFORMANCE_CHART_LIMIT: int = 10
    CHART_CACHE_TTL: int = 300  # 5 minutes

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
