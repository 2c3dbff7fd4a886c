"""
Health file writer for the ingestor daemon.

Writes a JSON health file at a configurable path with:
- last_message_ts: ISO timestamp of the most recent transport message.
- last_ingest_ts: ISO timestamp of the most recent ingested uplink.
- messages: Messages received since start.
- rejected: Messages rejected as unknown envelopes.
- measurements: Measurement rows persisted (new or already present).
- failed: Measurement rows that could not be written.

The file is rewritten on every state change, providing a simple liveness
signal that a container HEALTHCHECK or monitoring can inspect.

CHANGELOG:
- 2026-10-16: Track message/rejected/measurement counters
- 2026-10-15: Adapt from edge health writer
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)


class HealthWriter:
    """Writes ingestor health status to a JSON file.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._last_message_ts: str | None = None
        self._last_ingest_ts: str | None = None
        self._messages = 0
        self._rejected = 0
        self._measurements = 0
        self._failed = 0

    def record_message(self) -> None:
        """Record a received transport message."""
        self._last_message_ts = datetime.now(tz=UTC).isoformat()
        self._messages += 1
        self._write()

    def record_rejected(self) -> None:
        """Record a message rejected by the envelope normalizer."""
        self._rejected += 1
        self._write()

    def record_ingest(self, persisted: int, failed: int = 0) -> None:
        """Record an ingested uplink.

        Args:
            persisted: Measurement rows persisted for the uplink.
            failed: Measurement rows that failed to persist.
        """
        self._last_ingest_ts = datetime.now(tz=UTC).isoformat()
        self._measurements += persisted
        self._failed += failed
        self._write()

    def snapshot(self) -> dict[str, object]:
        """Return the current health state."""
        return {
            "last_message_ts": self._last_message_ts,
            "last_ingest_ts": self._last_ingest_ts,
            "messages": self._messages,
            "rejected": self._rejected,
            "measurements": self._measurements,
            "failed": self._failed,
        }

    def _write(self) -> None:
        """Write the health JSON file with current state.

        A write failure is logged; health reporting never interrupts ingestion.
        """
        try:
            self.path.write_text(json.dumps(self.snapshot()))
        except OSError:
            logger.warning("Failed to write health file %s", self.path, exc_info=True)
