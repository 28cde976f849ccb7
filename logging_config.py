from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

_CONTEXT_KEYS = (
    "metric",
    "sensor_id",
    "start",
    "end",
    "granularity",
    "sample_count",
    "page",
    "rate",
    "timezone",
    "status_code",
    "reason",
)

# Transport libraries log each request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")

_configured = False


def _render(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.6g}"
    return str(value)


class ContextualFormatter(logging.Formatter):
    """Appends ``key=value`` pairs for the context keys set through ``extra``."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        context_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._context_keys: Sequence[str] = tuple(context_keys or _CONTEXT_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = [
            f"{key}={_render(getattr(record, key))}"
            for key in self._context_keys
            if getattr(record, key, None) is not None
        ]
        if not context:
            return message
        return f"{message} | {' '.join(context)}"


def configure_logging(level: str | int | None = None, force: bool = False) -> None:
    """Install the contextual stream handler on the root logger once per process.

    ``NEURIO_DEBUG`` lowers the package loggers to DEBUG regardless of ``level``.
    """
    global _configured
    if _configured and not force:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level
    package_level = "DEBUG" if settings.debug else log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "context_keys": list(_CONTEXT_KEYS),
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "contextual",
                }
            },
            "loggers": {
                **{name: {"level": package_level} for name in ("services", "clients")},
                **{name: {"level": "WARNING"} for name in _NOISY_LOGGERS},
            },
            "root": {"handlers": ["console"], "level": log_level},
        }
    )

    _configured = True
