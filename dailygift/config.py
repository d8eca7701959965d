"""Application configuration management."""
from pydantic import model_validator, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from functools import lru_cache
from sqlalchemy.engine.url import make_url, URL
from typing import Annotated, Optional
import logging

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./gifts.db"

DEFAULT_GIFT_CATALOG = [
    "Logitech G Pro Mouse",
    "Razer Keyboard",
    "Sony Headphones",
    "Mouse Pad",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_timeout_seconds: float = 10.0  # Driver I/O and pool checkout timeout

    # Application
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: str = "*"  # Comma-separated list, "*" allows any origin
    log_dir: str = "logs"

    # Telegram
    telegram_bot_token: str = ""  # Bot is disabled when empty
    telegram_webapp_url: str = "https://example.com/gifts"

    # Gifts
    gift_catalog: Annotated[list[str], NoDecode] = DEFAULT_GIFT_CATALOG

    @field_validator("gift_catalog", mode="before")
    @classmethod
    def parse_gift_catalog(cls, value):
        """Parse comma-separated gift labels from environment variables."""
        if value is None:
            return list(DEFAULT_GIFT_CATALOG)
        if isinstance(value, str):
            items = [item.strip() for item in value.split(",") if item.strip()]
        elif isinstance(value, (list, tuple)):
            items = [str(item).strip() for item in value if str(item).strip()]
        else:
            raise TypeError("gift_catalog must be provided as a string or sequence")
        if not items:
            raise ValueError("gift_catalog must contain at least one gift")
        return items

    @property
    def bot_enabled(self) -> bool:
        return bool(self.telegram_bot_token)

    @property
    def origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()] or ["*"]

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate numeric settings and normalize Postgres URLs."""
        logger = logging.getLogger(__name__)

        if self.db_timeout_seconds <= 0:
            raise ValueError("db_timeout_seconds must be positive")

        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}")

        url = self.database_url
        if not url:
            logger.warning("Empty DATABASE_URL, using SQLite fallback")
            self.database_url = SQLITE_LOCAL_URL
            return self

        parsed: Optional[URL] = None
        try:
            parsed = make_url(url)
        except Exception as e:  # pragma: no cover - defensive fallback
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            logger.warning("Invalid DATABASE_URL; falling back to default sqlite database.")
            self.database_url = SQLITE_LOCAL_URL
            return self

        drivername = parsed.drivername
        if drivername.startswith("postgres") and "+asyncpg" not in drivername:
            old_drivername = drivername
            parsed = parsed.set(drivername="postgresql+asyncpg")
            logger.info(f"Driver normalized: {old_drivername} -> {parsed.drivername}")
        elif drivername == "sqlite":
            parsed = parsed.set(drivername="sqlite+aiosqlite")
            logger.info("Driver normalized: sqlite -> sqlite+aiosqlite")

        # render_as_string re-encodes special characters in the password
        self.database_url = parsed.render_as_string(hide_password=False)
        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
