"""Logging setup for the guessometer API and CLI.

Two output modes:
- Text (dev): ``time [LEVEL] logger: message`` lines.
- JSON (production): one object per line. Values passed through
  ``extra=`` (``logger.info("...", extra={"user_id": uid})``) become
  top-level keys.

Usage:
    from guessometer.logging_config import setup_logging

    setup_logging()                         # INFO, text
    setup_logging(level="DEBUG")            # DEBUG, text
    setup_logging(json_format=True)         # INFO, JSON lines
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Libraries that log every request/statement at INFO.
_QUIET_LOGGERS = ("aiohttp.access", "sqlalchemy.engine", "httpx")

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class _JSONFormatter(logging.Formatter):
    """Render a record as a single JSON line.

    Keys: timestamp (ISO-8601 UTC), severity, module, message, exception
    (when attached), then any ``extra=`` fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and key not in payload:
                payload[key] = value
        return json.dumps(payload, default=str)


def _resolve_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Invalid log level: {level!r}")
    return numeric


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Install one stderr handler on the root logger.

    Safe to call repeatedly: previously installed root handlers are
    closed and replaced.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Emit JSON lines instead of text.

    Raises:
        ValueError: If *level* is not a recognised log level name.
    """
    numeric_level = _resolve_level(level)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(_JSONFormatter() if json_format else logging.Formatter(_TEXT_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # Only let library chatter through when debugging.
    library_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
