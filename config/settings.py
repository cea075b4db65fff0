"""Pydantic Settings — typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False

    # ── Spreadsheet store (Apps Script web app) ──────────────
    sheet_api_url: str = ""
    sheet_timeout: int = 30  # seconds; Apps Script cold starts are slow
    # Service account sent with every non-login action
    sheet_username: str = ""
    sheet_password: str = ""
    use_mock_data: bool = False  # serve services/mock_data.py when debug=True

    # ── Dashboard tuning ─────────────────────────────────────
    leaderboard_size: int = 10
    activity_feed_limit: int = 8
    recent_classes_limit: int = 4
    active_window_days: int = 7


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
