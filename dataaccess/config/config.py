"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed connection configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Every field has a default so importing the package never fails; a
  `Database` built from incomplete settings fails on first use instead.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from dataaccess.config.config import settings

db_host = settings.DB_HOST

Security
--------
- Never commit secrets or the `.env` file to source control.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Connection settings loaded from environment variables or a `.env` file.
    Explicit arguments given to `Database(...)` take precedence over these.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DB_DRIVER_NAME: str = Field("mysql+pymysql", description="SQLAlchemy driver name (e.g., `mysql+pymysql`, `postgresql+psycopg2`, `sqlite`).")
    DB_HOST: str = Field("localhost", description="Hostname or IP address of the database server.")
    DB_PORT: int = Field(3306, description="TCP port of the database server.")
    DB_USERNAME: str = Field("root", description="Database username credential.")
    DB_PASSWORD: str = Field("", description="Database password credential.")
    DB_DATABASE_NAME: str = Field("", description="Name of the application's database.")
    DB_ECHO: bool = Field(False, description="Log every SQL statement emitted by the engine.")
    LOG_LEVEL: str = Field("INFO", description="Level passed to `configure_logging` when no level is given.")


# Singleton instance of Settings, ready to be imported across the package
settings = Settings()
"""Process-wide connection defaults read once at import time."""
