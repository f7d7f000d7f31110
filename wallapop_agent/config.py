"""Process configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 4100
    proxy_url: str | None = None
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build :class:`Settings` from ``PORT``, ``HOST``, ``PROXY_URL`` and ``LOG_LEVEL``."""
    return Settings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "4100")),
        proxy_url=os.getenv("PROXY_URL") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
