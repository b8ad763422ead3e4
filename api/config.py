"""API server configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class Settings:
    """Application settings, configurable via environment variables.

    Environment variables:
        ETTS_HOST: Server bind address (default "127.0.0.1")
        ETTS_PORT: Server port (default 8000)
        ETTS_CORS_ORIGINS: Comma-separated allowed origins (default: none, reject cross-origin)
        ETTS_RATE_LIMIT: Requests per minute per client (default 120, 0 = unlimited)
        ETTS_CONFIG: Optional YAML speech configuration file
    """

    host: str = field(default_factory=lambda: os.getenv("ETTS_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("ETTS_PORT", "8000")))
    cors_origins: list[str] = field(default_factory=lambda: _parse_cors())
    rate_limit_per_minute: int = field(
        default_factory=lambda: int(os.getenv("ETTS_RATE_LIMIT", "120"))
    )
    config_path: str | None = field(default_factory=lambda: os.getenv("ETTS_CONFIG") or None)


def _parse_cors() -> list[str]:
    raw = os.getenv("ETTS_CORS_ORIGINS", "")
    if not raw:
        return []
    return [o.strip() for o in raw.split(",") if o.strip()]
