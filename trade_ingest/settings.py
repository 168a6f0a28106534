"""Runtime settings read from the environment.

    TRADE_INGEST_DEFAULT_TIMEZONE   - hint for timestamps without an offset (default "utc")
    TRADE_INGEST_LOG_LEVEL          - log level for the API / CLI entry points (default INFO)
    TRADE_INGEST_MAX_UPLOAD_BYTES   - request size limit for the HTTP service (default 5 MiB)
    TRADE_INGEST_CORS_ORIGINS       - comma-separated allowed origins for the HTTP service

The parser itself never reads the environment; entry points call
load_settings() once and pass values down.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class ParserSettings:
    default_timezone: str = "utc"
    log_level: str = "INFO"
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[Settings] %s=%r is not an integer, using %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("[Settings] %s must be positive, using %d", name, default)
        return default
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> ParserSettings:
    """Build settings from ``env`` (defaults to os.environ)."""
    env = os.environ if env is None else env
    origins = tuple(
        o.strip() for o in env.get("TRADE_INGEST_CORS_ORIGINS", "").split(",") if o.strip()
    )
    return ParserSettings(
        default_timezone=(env.get("TRADE_INGEST_DEFAULT_TIMEZONE") or "utc").strip() or "utc",
        log_level=(env.get("TRADE_INGEST_LOG_LEVEL") or "INFO").strip().upper(),
        max_upload_bytes=_int_setting(env, "TRADE_INGEST_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        cors_origins=origins or ParserSettings.cors_origins,
    )
