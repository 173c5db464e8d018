"""Environment-based configuration for the API service."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


class Settings:
    """API configuration loaded from environment variables."""

    def __init__(self):
        self.host = os.getenv("AFFILIATE_API_HOST", "0.0.0.0")
        self.port = int(os.getenv("AFFILIATE_API_PORT", "8000"))
        self.data_path = os.getenv(
            "AFFILIATE_DATA_PATH",
            str(Path.home() / ".affiliate-income" / "ledger"),
        )
        self.config_path = os.getenv(
            "AFFILIATE_CONFIG_PATH",
            str(Path.home() / ".affiliate-income" / "program_config.json"),
        )
        self.debug = os.getenv("AFFILIATE_ENGINE_ENV", "production") != "production"

        # Origin used for signup links
        self.public_origin = os.getenv("AFFILIATE_PUBLIC_ORIGIN", "http://localhost:3000")

        # CORS
        origins = os.getenv("AFFILIATE_ALLOWED_ORIGINS", "")
        self.allowed_origins = [o.strip() for o in origins.split(",") if o.strip()] or DEFAULT_ORIGINS


_settings = None


def _get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Re-read the environment (used after the environment changes)."""
    global _settings
    _settings = Settings()
    return _settings


class _SettingsProxy:
    """Lazy proxy so settings aren't loaded until first access."""

    def __getattr__(self, name):
        return getattr(_get_settings(), name)


settings = _SettingsProxy()
