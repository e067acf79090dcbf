"""Runtime settings and logging setup."""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, Field

DEFAULT_API_URL = "https://deaconapi.myworkatcornerstone.com"
DEFAULT_DB_PATH = "sessionlab.db"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseModel):
    """Settings for the collaborator clients and the local store."""

    api_url: str = DEFAULT_API_URL
    api_token: str | None = None
    user_id: str = "a6d3028d-a025-493f-a75a-8ee5e88ff52b"
    platform: str = "python"
    timeout: float = Field(default=30.0, gt=0)
    db_path: str = DEFAULT_DB_PATH
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from SESSIONLAB_* environment variables."""
        env = {
            "api_url": os.environ.get("SESSIONLAB_API_URL"),
            "api_token": os.environ.get("SESSIONLAB_API_TOKEN"),
            "user_id": os.environ.get("SESSIONLAB_USER_ID"),
            "timeout": os.environ.get("SESSIONLAB_TIMEOUT"),
            "db_path": os.environ.get("SESSIONLAB_DB_PATH"),
            "log_level": os.environ.get("SESSIONLAB_LOG_LEVEL"),
        }
        values = {k: v for k, v in env.items() if v is not None}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a stream handler to the package logger once and set its level."""
    if isinstance(level, str):
        level = getattr(logging, level.strip().upper(), logging.INFO)

    logger = logging.getLogger("sessionlab")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
