"""Application settings using environment variables."""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration for the user backend."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    HOST: str = "0.0.0.0"
    PORT: int = 8080

    MYSQL_DB_HOST: str = "localhost"
    MYSQL_DB_PORT: int = 3306
    MYSQL_DB_DATABASE: str = "users"
    MYSQL_DB_USERNAME: str = "root"
    MYSQL_DB_PASSWORD: str = ""
    MYSQL_DB_CHARSET: str = "utf8mb4"

    # Full URL override, e.g. sqlite:// for local runs
    DATABASE_URL: Optional[str] = None

    DB_POOL_SIZE: int = 50
    DB_POOL_RECYCLE: int = -1
    DB_POOL_TIMEOUT: float = 30.0
    DB_HEALTH_TIMEOUT: float = 1.0

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    def sqlalchemy_url(self) -> str:
        """Build a SQLAlchemy URL for MySQL using pymysql driver."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{quote_plus(self.MYSQL_DB_USERNAME)}:{quote_plus(self.MYSQL_DB_PASSWORD)}"
            f"@{self.MYSQL_DB_HOST}:{self.MYSQL_DB_PORT}/{self.MYSQL_DB_DATABASE}"
            f"?charset={self.MYSQL_DB_CHARSET}"
        )


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing env."""
    return Settings()
