"""App configuration."""
from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Runtime settings sourced from environment variables."""

    env: str = field(default_factory=lambda: os.getenv("ENV", "development"))
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite+pysqlite:///./couponadmin.db"))
    strapi_url: str = field(default_factory=lambda: os.getenv("STRAPI_URL", "").rstrip("/"))
    strapi_token: str = field(default_factory=lambda: os.getenv("STRAPI_TOKEN", ""))
    strapi_timeout: float = field(default_factory=lambda: float(os.getenv("STRAPI_TIMEOUT", "30")))
    strapi_page_size: int = field(default_factory=lambda: _env_int("STRAPI_PAGE_SIZE", 500))
    reorder_concurrency: int = field(default_factory=lambda: _env_int("REORDER_CONCURRENCY", 4))
    reorder_bucket_mode: str = field(default_factory=lambda: os.getenv("REORDER_BUCKET_MODE", "merchant"))
    top_priority_highest: bool = field(default_factory=lambda: _env_bool("TOP_PRIORITY_HIGHEST", "true"))
    admin_api_key: str = field(default_factory=lambda: os.getenv("ADMIN_API_KEY", ""))
    admin_jwt_secret: str = field(default_factory=lambda: os.getenv("ADMIN_JWT_SECRET", ""))
    redis_url: str = field(default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    allowed_origins: str = field(default_factory=lambda: os.getenv("ALLOWED_ORIGINS", ""))
    auto_create_tables: bool = field(default_factory=lambda: _env_bool("AUTO_CREATE_TABLES", "false"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def get_settings() -> Settings:
    """Return settings read from the current environment."""
    return Settings()
