"""
Per-message handling: normalize one transport payload and ingest it.

One call handles one uplink and is independent of every other call, so the
transports may run any number of them concurrently.  Ordering between calls is
irrelevant: measurements are keyed by uplink time, and station/gateway upserts
are last-write-wins.

CHANGELOG:
- 2026-10-15: Initial creation
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ingestor.src.envelope import UnknownEnvelopeShape, normalize
from ingestor.src.health import HealthWriter
from ingestor.src.services.ingestion import IngestSummary, ingest

logger = logging.getLogger(__name__)


async def handle_message(
    session_factory: async_sessionmaker[AsyncSession],
    payload: bytes | str,
    *,
    topic: str | None = None,
    record_uplinks: bool = False,
    health: HealthWriter | None = None,
) -> IngestSummary | None:
    """Normalize and ingest one uplink message.

    Unknown envelope shapes are logged and dropped without opening a
    database session.

    Args:
        session_factory: Factory for the per-message database session.
        payload: Raw message body (JSON).
        topic: Transport topic, for logging only.
        record_uplinks: Also store the uplink RF statistics row.
        health: HealthWriter instance, or None to skip health writes.

    Returns:
        IngestSummary for ingested uplinks, None for rejected messages.
    """
    if health is not None:
        health.record_message()

    try:
        record = normalize(payload)
    except UnknownEnvelopeShape as exc:
        logger.warning("parse error: %s (topic: %s)", exc, topic)
        if health is not None:
            health.record_rejected()
        return None

    async with session_factory() as db:
        summary = await ingest(db, record, record_uplinks=record_uplinks)

    if health is not None:
        health.record_ingest(summary.persisted, summary.failed)
    return summary
