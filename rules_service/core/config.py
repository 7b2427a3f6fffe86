from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: Optional[str] = None

    # Database (PostgreSQL in deployed environments, SQLite allowed locally)
    DATABASE_URL: Optional[str] = None

    # Log Level
    LOG_LEVEL: (
        str  # Required: Must be set in environment (e.g., INFO, DEBUG, WARNING, ERROR)
    )

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Rules-Service"
    VERSION: str = "1.0.0"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Admin token for threat pattern / template provisioning
    ADMIN_TOKEN: Optional[str] = None

    # Rate limiting (slowapi limit string applied per client address)
    RATE_LIMIT_DEFAULT: str = "100/15minutes"
    RATE_LIMIT_ENABLED: bool = True

    # Sentry Configuration
    SENTRY_DSN: Optional[str] = None  # Sentry DSN for error tracking

    # Insert default threat patterns and rule templates on startup
    SEED_DEFAULTS: bool = True

    # Audit log reads
    AUDIT_LOG_DEFAULT_LIMIT: int = 100
    AUDIT_LOG_MAX_LIMIT: int = 500

    # Logging Configuration
    LOGGING_FRAME_DEPTH: int = (
        6  # Frame depth for finding logging call origin in stack trace
    )

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    # --------- Properties ---------
    @property
    def is_local(self) -> bool:
        """
        Check if running in local development environment.

        Supported values:
        - "local" or "local_dev" → True (local development)
        - "dev", "staging", "prod", or anything else → False (deployed)
        """
        if not self.ENVIRONMENT:
            return False
        env = self.ENVIRONMENT.lower()
        return env in ["local", "local_dev"]

    @property
    def database_url(self) -> str:
        """
        Async database URL.

        Plain postgres URLs are rewritten to the asyncpg driver; any other
        URL (e.g. sqlite+aiosqlite) is used as-is.
        """
        if not self.DATABASE_URL:
            raise ValueError(
                "DATABASE_URL is required. Please set it in your .env file."
            )
        url = self.DATABASE_URL
        if url.startswith("postgresql://") or url.startswith("postgres://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://").replace(
                "postgres://", "postgresql+asyncpg://"
            )
        return url


settings = Settings()
