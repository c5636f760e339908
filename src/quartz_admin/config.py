"""Application configuration via pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DRIVER = "postgresql+psycopg2"
DEFAULT_TABLE_PREFIX = "qrtz_"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QUARTZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    url: str | None = Field(default=None, description="SQLAlchemy (or jdbc:) database URL")
    user: str | None = None
    password: str | None = None
    driver: str = DEFAULT_DRIVER

    # Quartz table layout
    db_schema: str | None = None
    table_prefix: str = DEFAULT_TABLE_PREFIX
    scheduler_name: str | None = None

    # Logging
    log_level: str = "WARNING"

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8080
    cors_origins: list[str] = ["*"]

    @property
    def is_configured(self) -> bool:
        return bool(self.url)


@lru_cache
def get_settings() -> Settings:
    return Settings()
