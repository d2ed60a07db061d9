"""Logging setup for processes embedding indexbridge."""

from __future__ import annotations

import json
import logging
import sys


class JsonFormatter(logging.Formatter):
    """One JSON object per record; messages are escaped by ``json.dumps``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _is_own_handler(handler: logging.Handler) -> bool:
    return getattr(handler, "_indexbridge", False)


def setup_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """Configure the root logger with a stderr handler.

    Calling it again replaces the handler installed by a previous call.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler._indexbridge = True  # type: ignore[attr-defined]

    root = logging.getLogger()
    for existing in [h for h in root.handlers if _is_own_handler(h)]:
        root.removeHandler(existing)
    root.setLevel(level)
    root.addHandler(handler)
