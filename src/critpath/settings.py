from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    db_file: str = Field(default="critpath_tasks.json", alias="CRITPATH_DB_FILE")
    log_level: str = Field(default="WARNING", alias="CRITPATH_LOG_LEVEL")


def get_settings() -> Settings:
    return Settings()
