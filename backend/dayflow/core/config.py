"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "DayFlow Backend"
    debug: bool = False
    log_level: str = "INFO"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "dayflow"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    min_goal_length: int = 10
    default_day_start: str = "9:00 AM"
    default_day_end: str = "6:00 PM"
    calendar_provider: str = "mock"
    calendar_id: str = "primary"
    timezone: str = "UTC"
    calendar_sync_max_workers: int = 4
    calendar_auth_provider: str = "google.com"
    firebase_project_id: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
