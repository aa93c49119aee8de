"""
Application Configuration.

Pydantic Settings model for the Tesorería application.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- National ID lookup (consultasperu.com) ---
    CONSULTAS_PERU_API_URL: str = "https://api.consultasperu.com/api/v1/query"
    CONSULTAS_PERU_API_TOKEN: SecretStr = SecretStr("")
    HTTP_TIMEOUT_S: float = 10.0

    # --- Dashboard ---
    RECENT_TRANSACTIONS_LIMIT: int = 5

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "tesoreria.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so operators get a log line instead of a confusing failure later.
        """
        _log = logging.getLogger("tesoreria.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found — all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL:
            _log.warning(
                "SUPABASE_URL is empty — the remote store is unavailable "
                "and every fetch will report a transport error."
            )

        if not self.CONSULTAS_PERU_API_TOKEN.get_secret_value():
            _log.warning(
                "CONSULTAS_PERU_API_TOKEN is empty — DNI enrichment is "
                "disabled; members must be entered manually."
            )

        return self


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern so the fast path never touches the lock.

    Prefer direct constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
