"""
Structured JSON logging shared by the command line tools.

One JSON object per line on stderr with ``ts``, ``level``, ``logger`` and
``msg`` keys, plus ``exception`` when a traceback is attached.

CHANGELOG:
- 2026-10-19: Extracted from the decoder CLI and the ingestor daemon
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(debug: bool = False, *, default_level: int = logging.WARNING) -> None:
    """Replace the root handlers with a single JSON handler on stderr.

    Args:
        debug: Log at DEBUG regardless of *default_level*.
        default_level: Root level when *debug* is off.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else default_level)
