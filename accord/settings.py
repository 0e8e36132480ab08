"""
accord.settings
===============

Configuration for the Accord engine and its HTTP surface.

Module-level constants cover process-wide knobs; the :class:`Settings`
model holds everything needed to talk to the remote status service.
Both read from the environment (``ACCORD_*``) and can be overridden via a
``.env`` file.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings

# API settings
# ---------------------------------------------------------------------------
API_HOST = os.environ.get("ACCORD_API_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("ACCORD_API_PORT", "8000"))
API_DEBUG = os.environ.get("ACCORD_API_DEBUG", "False").lower() == "true"

# Logging
# ---------------------------------------------------------------------------
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ---------------------------------------------------------------------------
# Pydantic settings model for the remote status service
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Application settings, loaded from environment variables."""

    remote_base_url: HttpUrl = Field(
        default=os.environ.get("ACCORD_REMOTE_BASE_URL", "http://localhost:3000/api"),
        description="Base URL of the backend that owns organization status",
    )
    remote_api_token: Optional[str] = Field(
        default=os.environ.get("ACCORD_REMOTE_API_TOKEN"),
        description="Bearer token sent to the backend, if any",
    )
    remote_timeout: float = Field(
        default=float(os.environ.get("ACCORD_REMOTE_TIMEOUT", "15")),
        description="Seconds before a status change request is abandoned",
    )
    expiring_soon_days: int = Field(
        default=int(os.environ.get("ACCORD_EXPIRING_SOON_DAYS", "30")),
        description="Window used to flag agreements that expire soon",
    )
    sync_on_startup: bool = Field(
        default=os.environ.get("ACCORD_SYNC_ON_STARTUP", "True").lower() == "true",
        description="Load the portfolio from the backend when the API starts",
    )
    log_level: str = Field(
        default=os.environ.get("ACCORD_LOG_LEVEL", "INFO"),
        description="Root log level for the accord and api packages",
    )

    class Config:
        """Configuration for the settings model."""
        env_prefix = "ACCORD_"
        env_file = ".env"
        case_sensitive = False


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stream handler to the root logger at *level* (or the configured one)."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )


# Initialize settings
settings = Settings()
