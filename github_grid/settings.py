from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    `refresh_interval_minutes` controls how often the grid refreshes itself,
    `fetch_timeout_seconds` is the hard cap on a single `gh` invocation.
    """

    gh_executable: str = "gh"
    refresh_interval_minutes: int = Field(default=20, gt=0)
    fetch_timeout_seconds: float = Field(default=30.0, gt=0)
    host: str = "127.0.0.1"
    port: int = 8765
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
