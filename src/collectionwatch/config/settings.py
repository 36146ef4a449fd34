"""Application settings loaded from environment variables and `.env`."""

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Database connection settings."""

    url: str = "sqlite+aiosqlite:///./collectionwatch.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True
    # Create missing tables at startup. Turn off where Alembic owns the schema.
    auto_create_tables: bool = True


class ObservabilitySettings(BaseModel):
    """Logging settings."""

    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


# Hey future me - the ORDER of `formats` matters! The first token is the serializer
# used to render 406 errors when nothing could be negotiated. Keep xml first unless
# every client of the web service speaks JSON.
class WebServiceSettings(BaseModel):
    """Web service output format settings."""

    formats: list[str] = Field(default_factory=lambda: ["xml", "json"])
    default_accept: str = "application/xml"

    @field_validator("formats", mode="before")
    @classmethod
    def split_formats(cls, v: object) -> object:
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v


class NotificationSettings(BaseModel):
    """Release notification defaults."""

    default_lead_days: int = Field(default=7, ge=0)
    initial_lookback_days: int = Field(default=7, ge=0)
    sweep_batch_size: int = Field(default=100, ge=1)


class Settings(BaseSettings):
    """Application settings.

    Nested sections are set through `__`-delimited variables, e.g.
    `DATABASE__URL=postgresql+asyncpg://...` or `WEBSERVICE__FORMATS='["json","xml"]'`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "collectionwatch"
    version: str = "0.1.0"
    debug: bool = False

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    webservice: WebServiceSettings = Field(default_factory=WebServiceSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
