"""RevPace — Structured JSON Logging.

Every logger lives under the ``revpace`` namespace and shares one stdout
handler attached to that namespace.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from app.config import settings

ROOT_LOGGER = "revpace"

# Context passed through ``extra=`` that ends up as top-level JSON keys
EXTRA_FIELDS = ("endpoint", "platform_key", "row", "duration_ms", "status_code")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with request/upload context when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)}
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _namespace_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
        root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Return ``revpace.<name>``; records flow to the shared JSON handler."""
    _namespace_logger()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
