"""
Application Configuration.

Pydantic Settings model for the Expense Tracker application.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings
from pydantic import SecretStr, field_validator, model_validator


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Store selection ---
    # "supabase" talks to the managed backend; "sqlite" keeps everything in
    # a local single-user database file.
    STORE_BACKEND: Literal["supabase", "sqlite"] = "supabase"
    SQLITE_PATH: str = "expenses_local.db"
    LOCAL_USER_ID: str = "local-user"
    LOCAL_USER_EMAIL: str = "local@localhost"

    # --- Display / export ---
    DISPLAY_TIMEZONE: str = "UTC"
    CURRENCY_SYMBOL: str = "₹"  # Indian rupee sign
    EXPORT_DATE_FORMAT: str = "%d/%m/%Y"
    EXPORT_DIRECTORY: str = "."

    # --- Logging ---
    LOG_FILE: str = "expense_tracker.log"
    LOG_LEVEL: str = "INFO"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "EXPENSE_TRACKER_",
        "extra": "ignore",
    }

    @field_validator("DISPLAY_TIMEZONE")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing.
        This validator logs a warning so operators know the app is running
        with placeholder values.
        """
        _log = logging.getLogger("expense_tracker.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; all configuration loaded from "
                "environment variables or defaults."
            )

        if self.STORE_BACKEND == "supabase" and not self.SUPABASE_URL:
            _log.warning(
                "SUPABASE_URL is empty while STORE_BACKEND=supabase. "
                "Remote operations will fail until it is configured."
            )

        return self

    @property
    def timezone(self) -> ZoneInfo:
        """The display timezone used for date filters and export dates."""
        return ZoneInfo(self.DISPLAY_TIMEZONE)

    @property
    def log_level(self) -> int:
        return logging.getLevelNamesMapping()[self.LOG_LEVEL]


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern so the fast path stays lock-free.

    Prefer direct constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
