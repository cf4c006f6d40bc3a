# mentormesh/config.py
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # "dev" echoes exception text in 500 responses; deployments must set ENV=prod
    ENV: str = "dev"
    APP_NAME: str = "MentorMesh Scheduling API"

    # DB URL – SQLite file by default, any SQLAlchemy URL works
    DATABASE_URL: str = "sqlite:///./mentormesh.db"

    LOG_LEVEL: str = "INFO"

    # Video meeting rooms are derived from (mentor_id, slot_id), no API call
    MEETING_BASE_URL: str = "https://meet.jit.si"
    MEETING_ROOM_PREFIX: str = "mentormesh"

    # How early (minutes) a participant may join before the scheduled start
    JOIN_WINDOW_MINUTES: int = 10

    SEARCH_MAX_LIMIT: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

_settings: Optional[Settings] = None

def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
