"""Structured Logging — JSON formatter and setup for the browser core.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (species_id, cache_kind, error_code, attempt) surfaced when present
    - Logs go to stderr so stdout stays free for terminal drawing

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - setup_logging called once by open_browser_core()
"""

import logging
import json
import sys
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "species_id", "cache_kind", "cache_key", "error_code",
    "attempt", "delay_ms", "url", "rows", "cols",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Configure root logging; returns the installed handler so callers can remove it."""
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
