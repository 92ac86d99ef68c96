from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Fixed, never read from the environment
CLEANUP_INTERVAL = timedelta(minutes=2)
IDLE_THRESHOLD = timedelta(minutes=2)

APPLICATION_NAME = "idle-reaper"


class Settings(BaseSettings):
    DATABASE_URL: str = Field(
        validation_alias=AliasChoices("DATABASE_URL", "INTERNAL_DATABASE_URL")
    )
    DB_SSL_VERIFY: bool = True
    DB_SSL_ROOT_CERT: str | None = None
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        # Go up two levels from core/config.py → project root
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        extra="ignore",
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def normalize_database_url(cls, value: str) -> str:
        # Hosting providers hand out postgres:// which SQLAlchemy no longer accepts
        for prefix in ("postgres://", "postgresql://"):
            if value.startswith(prefix):
                return "postgresql+psycopg2://" + value[len(prefix):]
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
