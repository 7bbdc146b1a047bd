"""
Configuration settings for recordstore.

Uses Pydantic Settings to load environment variables for the database
connection, the shared pool, per-call deadlines, and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_dsn: Optional[str] = Field(None, alias="DB_DSN")
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("recordstore", alias="DB_NAME")

    # Pool
    db_max_open_conns: int = Field(25, alias="DB_MAX_OPEN_CONNS")
    db_min_conns: int = Field(1, alias="DB_MIN_CONNS")
    db_max_idle_time_seconds: float = Field(900.0, alias="DB_MAX_IDLE_TIME_SECONDS")

    # Deadlines
    db_query_timeout_seconds: float = Field(3.0, alias="DB_QUERY_TIMEOUT_SECONDS")
    db_connect_timeout_seconds: float = Field(5.0, alias="DB_CONNECT_TIMEOUT_SECONDS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
