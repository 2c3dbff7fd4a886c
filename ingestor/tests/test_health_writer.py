"""
Tests for the ingestor health file writer.

CHANGELOG:
- 2026-10-16: Cover message/rejected/measurement counters
- 2026-10-15: Adapt from edge health writer tests
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from ingestor.src.health import HealthWriter


def _read(path: Path) -> dict:
    return json.loads(path.read_text())


class TestHealthWriter:
    """Counters and timestamps are persisted on every change."""

    def test_initial_snapshot(self, tmp_path: Path) -> None:
        writer = HealthWriter(tmp_path / "health.json")
        assert writer.snapshot() == {
            "last_message_ts": None,
            "last_ingest_ts": None,
            "messages": 0,
            "rejected": 0,
            "measurements": 0,
            "failed": 0,
        }
        assert not (tmp_path / "health.json").exists()

    def test_record_message_writes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "health.json"
        writer = HealthWriter(str(path))

        writer.record_message()

        data = _read(path)
        assert data["messages"] == 1
        assert datetime.fromisoformat(data["last_message_ts"]).tzinfo is not None

    def test_counters_accumulate(self, tmp_path: Path) -> None:
        path = tmp_path / "health.json"
        writer = HealthWriter(path)

        writer.record_message()
        writer.record_ingest(4)
        writer.record_message()
        writer.record_rejected()
        writer.record_message()
        writer.record_ingest(2, failed=1)

        data = _read(path)
        assert data["messages"] == 3
        assert data["rejected"] == 1
        assert data["measurements"] == 6
        assert data["failed"] == 1
        assert data["last_ingest_ts"] is not None

    def test_write_failure_is_logged(self, tmp_path: Path, caplog) -> None:
        writer = HealthWriter(tmp_path / "missing" / "health.json")

        with caplog.at_level(logging.WARNING):
            writer.record_message()

        assert writer.snapshot()["messages"] == 1
        assert any("Failed to write health file" in r.getMessage() for r in caplog.records)
