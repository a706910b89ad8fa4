from typing import Any, List
from pydantic import AnyHttpUrl, field_validator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings.

    Loads values from environment variables or .env file.
    """
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Rounds API"
    LOG_LEVEL: str = "INFO"

    # ROUNDS
    MAX_ROUND_MEMBERS: int = 50
    INVITE_CODE_LENGTH: int = 8
    TIMELINE_LIMIT: int = 100

    # SECURITY
    SECRET_KEY: str = Field(description="Secret key for JWT encoding")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # DATABASE
    DATABASE_URL: str = Field(description="Async SQLAlchemy connection URL")

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    # RATE LIMITING
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # EMAIL
    EMAILS_ENABLED: bool = False
    SMTP_TLS: bool = True
    SMTP_PORT: int | None = 587
    SMTP_HOST: str | None = None
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    EMAILS_FROM_EMAIL: str | None = "info@rounds.app"
    EMAILS_FROM_NAME: str | None = "Rounds"
    FRONTEND_URL: str = "https://rounds.app"

    # CELERY
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    LATE_SWEEP_INTERVAL_SECONDS: int = 3600

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Any) -> Any:
        """
        Parses comma-separated string of CORS origins into a list.
        """
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

settings = Settings()
