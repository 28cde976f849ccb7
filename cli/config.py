from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from settings import get_settings


@dataclass(frozen=True)
class CLIConfig:
    base_url: str
    sensor_id: Optional[str]
    access_token: Optional[str]
    rate: float = 0.0
    timezone_offset: Optional[int] = None
    debug: bool = False


def load_config(
    base_url: Optional[str] = None,
    sensor_id: Optional[str] = None,
    access_token: Optional[str] = None,
    rate: Optional[float] = None,
    timezone_offset: Optional[int] = None,
    debug: Optional[bool] = None,
) -> CLIConfig:
    """Merge command line options over the environment settings."""
    settings = get_settings()
    url = base_url or settings.base_url
    return CLIConfig(
        base_url=url.rstrip("/"),
        sensor_id=sensor_id or settings.sensor_id,
        access_token=access_token or settings.access_token,
        rate=settings.rate if rate is None else rate,
        timezone_offset=settings.timezone_offset if timezone_offset is None else timezone_offset,
        debug=settings.debug if debug is None else debug,
    )
