from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logger import get_logger


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    database_url: str = Field(..., alias="DATABASE_URL")
    admin_token: str = Field("", alias="ADMIN_TOKEN")

    # Standings are recomputed from the full result set on every miss; the
    # cache only bounds how stale a served table may be.
    standings_cache_ttl_seconds: int = Field(default=60, alias="STANDINGS_CACHE_TTL_SECONDS")
    standings_cache_max_entries: int = Field(default=256, alias="STANDINGS_CACHE_MAX_ENTRIES")

    public_rate_limit_per_minute: int = Field(default=60, alias="PUBLIC_RATE_LIMIT_PER_MINUTE")

    @model_validator(mode="after")
    def validate_admin_token(self):
        if not (self.admin_token or "").strip():
            logger = get_logger("settings")
            logger.warning("ADMIN_TOKEN is not configured; admin endpoints will reject every request")
        return self

    @property
    def is_prod(self) -> bool:
        return (self.app_env or "dev").strip().lower() in {"prod", "production"}

    @property
    def is_test_env(self) -> bool:
        return (self.app_env or "").strip().lower() in {"test", "pytest"}


default_settings = Settings()
settings = default_settings
