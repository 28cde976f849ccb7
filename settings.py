from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_BASE_URL_ENV = "NEURIO_API_BASE_URL"
_SENSOR_ID_ENV = "NEURIO_SENSOR_ID"
_ACCESS_TOKEN_ENV = "NEURIO_ACCESS_TOKEN"
_RATE_ENV = "NEURIO_RATE"
_TIMEZONE_OFFSET_ENV = "NEURIO_TIMEZONE_OFFSET"
_HTTP_TIMEOUT_ENV = "NEURIO_HTTP_TIMEOUT"
_PAGE_SIZE_ENV = "NEURIO_STATS_PAGE_SIZE"
_PAGE_LIMIT_ENV = "NEURIO_STATS_PAGE_LIMIT"
_DEBUG_ENV = "NEURIO_DEBUG"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_BASE_URL = "https://api.neur.io/v1"


@dataclass(frozen=True)
class Settings:
    base_url: str
    sensor_id: Optional[str]
    access_token: Optional[str]
    rate: float
    timezone_offset: Optional[int]
    http_timeout: float
    stats_page_size: int
    stats_page_limit: int
    debug: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float(name: str, default: float, positive: bool = False) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if not math.isfinite(parsed):
        return default
    if positive and parsed <= 0:
        return default
    return parsed


def _read_offset_minutes() -> Optional[int]:
    value = _read_optional_env(_TIMEZONE_OFFSET_ENV, None)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        base_url=_read_str_env(_BASE_URL_ENV, DEFAULT_BASE_URL).rstrip("/"),
        sensor_id=_read_optional_env(_SENSOR_ID_ENV, None),
        access_token=_read_optional_env(_ACCESS_TOKEN_ENV, None),
        rate=_read_float(_RATE_ENV, 0.0),
        timezone_offset=_read_offset_minutes(),
        http_timeout=_read_float(_HTTP_TIMEOUT_ENV, 30.0, positive=True),
        stats_page_size=_read_positive_int(_PAGE_SIZE_ENV, 500),
        stats_page_limit=_read_positive_int(_PAGE_LIMIT_ENV, 10),
        debug=_read_bool(_DEBUG_ENV, False),
        log_level=_read_log_level("INFO"),
    )
