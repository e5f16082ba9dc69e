"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: Optional[str] = None
    PGHOST: str = "localhost"
    PGPORT: int = 5432
    PGUSER: str = "postgres"
    PGPASSWORD: str = ""
    PGDATABASE: str = "postgres"
    DB_CONNECT_TIMEOUT_SECONDS: int = 10
    AUTO_CREATE_DB_SCHEMA: bool = True

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3003
    LOG_LEVEL: str = "INFO"

    # CORS
    USE_CORS: bool = False
    CORS_ORIGINS: List[str] = ["*"]

    # Chrome / Lighthouse
    CHROME_PATH: Optional[str] = None
    DEFAULT_CHROME_PORT: int = 9222
    DEFAULT_UP_TIMEOUT_MS: int = 30000
    LIGHTHOUSE_BIN: str = "lighthouse"
    LIGHTHOUSE_TIMEOUT_SECONDS: int = 300

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def database_url(self) -> str:
        """Explicit DATABASE_URL, or one assembled from the libpq PG* variables."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        auth = self.PGUSER
        if self.PGPASSWORD:
            auth = f"{auth}:{self.PGPASSWORD}"
        return f"postgresql+asyncpg://{auth}@{self.PGHOST}:{self.PGPORT}/{self.PGDATABASE}"


settings = Settings()
