# farmtrack/config.py
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve to the project root (one level up from farmtrack/)
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Settings read from FARMTRACK_* environment variables or a .env file."""

    model_config = SettingsConfigDict(env_prefix="FARMTRACK_", env_file=".env", case_sensitive=False)

    database_url: str = f"sqlite:///{(BASE_DIR / 'farmtrack.db').as_posix()}"
    storage_timeout_seconds: float = 5.0

    forecast_ttl_minutes: int = 30
    forecast_days: int = 5

    # write the demo records into empty stores on first start
    seed_sample_data: bool = True

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
