"""Logging setup driven by the ``logging`` config section.

text: ``2026-01-01T00:00:00+00:00 INFO vega.api - GET /demo/catalog``
json: one object per line (ts, level, logger, msg, exc when present)
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from core.config.schemas.observability import LoggingConfig

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "ts": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):  # noqa: N802
        return datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat(timespec="milliseconds")


def configure_logging(cfg: LoggingConfig) -> None:
    """Install a single stream handler on the ``vega`` and ``core`` trees."""
    handler = logging.StreamHandler()
    if cfg.format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            _TextFormatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
        )
    level = _LEVELS[cfg.level]
    for name in ("vega", "core"):
        logger = logging.getLogger(name)
        logger.handlers[:] = [handler]
        logger.setLevel(level)


__all__ = ["configure_logging"]
