"""
Ingestion service: persist one normalized uplink.

Writes, in order:

1. the station row (upsert, last write wins) when both the station EUI and
   the application id are known;
2. the gateway row (upsert) attributed from the *first* reception metadata
   entry only, which also supplies the location stored on every measurement;
3. optionally one RF statistics row for the uplink;
4. one measurement row per valid reading with a known sensor type, via
   ``INSERT ... ON CONFLICT DO NOTHING`` on the measurement uniqueness tuple.
   A reading that fails validation (e.g. a ``null`` value) is skipped on its
   own; its siblings are still written.

Every statement runs in its own transaction.  A failed dimension write is
logged and does not block measurements; a failed measurement write is logged
and only that row is skipped.  There is no batch transaction, so partial
success is a normal outcome.  Duplicate keys are silently ignored, which makes
redelivered uplinks a no-op for measurements.

CHANGELOG:
- 2026-10-19: Validate readings individually, count skipped_invalid
- 2026-10-16: Optional uplink RF statistics row
- 2026-10-15: Replace batch sample insert with per-row uplink ingestion

TODO:
- None
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any

from edge.src.models import SensorReading
from pydantic import ValidationError
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from ingestor.src.db.models import MEASUREMENT_KEY, Gateway, Measurement, Station, Uplink
from ingestor.src.envelope import CanonicalRecord, RxMetadata, UplinkMessage
from ingestor.src.sensor_types import is_known_sensor_type

logger = logging.getLogger(__name__)


@dataclass
class IngestSummary:
    """Outcome of ingesting one uplink.

    Attributes:
        station_eui: Station the uplink came from.
        attempted: Readings with a known sensor type (insert attempted).
        inserted: New measurement rows written.
        duplicates: Readings whose key already existed (no-op).
        failed: Readings that could not be written.
        skipped_unknown_type: Readings dropped for an unknown sensor type.
        skipped_invalid: Readings dropped because they failed validation.
    """

    station_eui: str
    attempted: int = 0
    inserted: int = 0
    duplicates: int = 0
    failed: int = 0
    skipped_unknown_type: int = 0
    skipped_invalid: int = 0

    @property
    def persisted(self) -> int:
        """Readings now present in storage (new rows plus duplicates)."""
        return self.inserted + self.duplicates

    def as_dict(self) -> dict[str, Any]:
        """Serializable form including :attr:`persisted`."""
        data = asdict(self)
        data["persisted"] = self.persisted
        return data


@dataclass(frozen=True, slots=True)
class GatewayAttribution:
    """Gateway and location attributed to an uplink (first rx entry only)."""

    gateway_id: str | None = None
    gateway_eui: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    rx: RxMetadata | None = None


def attribute_gateway(uplink: UplinkMessage) -> GatewayAttribution:
    """Attribute gateway and location from ``rx_metadata[0]``.

    When several gateways heard the uplink, only the first entry is used.

    Args:
        uplink: The uplink message.

    Returns:
        GatewayAttribution: Empty when no reception metadata is present.
    """
    if not uplink.rx_metadata:
        return GatewayAttribution()

    rx = uplink.rx_metadata[0]
    lat = lon = None
    if rx.location is not None:
        lat, lon = rx.location.latitude, rx.location.longitude
    return GatewayAttribution(
        gateway_id=rx.gateway_ids.gateway_id or None,
        gateway_eui=rx.gateway_ids.eui or None,
        latitude=lat,
        longitude=lon,
        rx=rx,
    )


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


def station_upsert(record: CanonicalRecord) -> Executable:
    """INSERT ... ON CONFLICT (station_eui) DO UPDATE for the station row."""
    stmt = pg_insert(Station).values(
        station_eui=record.station_eui,
        application_id=record.application_id,
        station_devid=record.station_dev_id,
    )
    return stmt.on_conflict_do_update(
        index_elements=["station_eui"],
        set_={
            "application_id": stmt.excluded.application_id,
            "station_devid": stmt.excluded.station_devid,
        },
    )


def gateway_upsert(gateway_id: str, gateway_eui: str | None) -> Executable:
    """INSERT ... ON CONFLICT (gateway_id) DO UPDATE for the gateway row."""
    stmt = pg_insert(Gateway).values(gateway_id=gateway_id, gateway_eui=gateway_eui)
    return stmt.on_conflict_do_update(
        index_elements=["gateway_id"],
        set_={"gateway_eui": stmt.excluded.gateway_eui},
    )


def uplink_insert(record: CanonicalRecord, gw: GatewayAttribution) -> Executable:
    """Plain INSERT of the uplink RF statistics row."""
    lora = record.uplink.settings.data_rate.lora
    return pg_insert(Uplink).values(
        event_time=record.received_at,
        station_eui=record.station_eui,
        gateway_id=gw.gateway_id,
        rssi=gw.rx.rssi if gw.rx is not None else None,
        snr=gw.rx.snr if gw.rx is not None else None,
        frequency_hz=record.uplink.settings.frequency,
        sf=lora.spreading_factor,
        bandwidth_hz=lora.bandwidth,
        coding_rate=lora.coding_rate or None,
        latitude=gw.latitude,
        longitude=gw.longitude,
    )


def measurement_insert(row: dict[str, Any]) -> Executable:
    """INSERT ... ON CONFLICT DO NOTHING on the measurement uniqueness tuple."""
    return (
        pg_insert(Measurement)
        .values(row)
        .on_conflict_do_nothing(index_elements=list(MEASUREMENT_KEY))
    )


async def _execute(db: AsyncSession, stmt: Executable) -> int:
    """Execute *stmt* in its own transaction and return the row count.

    Raises:
        SQLAlchemyError: After rolling back, if the statement failed.
    """
    try:
        result = await db.execute(stmt)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    return result.rowcount


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def ingest(
    db: AsyncSession,
    record: CanonicalRecord,
    *,
    record_uplinks: bool = False,
) -> IngestSummary:
    """Persist a canonical uplink record.

    Args:
        db: Async SQLAlchemy session (one per uplink).
        record: Normalized uplink.
        record_uplinks: Also insert the uplink RF statistics row.

    Returns:
        IngestSummary: Per-row outcome counts for the uplink.
    """
    summary = IngestSummary(station_eui=record.station_eui)

    if record.station_eui and record.application_id:
        try:
            await _execute(db, station_upsert(record))
        except SQLAlchemyError as exc:
            logger.error("station upsert error: %s (eui: %s)", exc, record.station_eui)

    gw = attribute_gateway(record.uplink)
    if gw.gateway_id:
        try:
            await _execute(db, gateway_upsert(gw.gateway_id, gw.gateway_eui))
        except SQLAlchemyError as exc:
            logger.error("gateway upsert error: %s (gateway: %s)", exc, gw.gateway_id)

    if record_uplinks:
        try:
            await _execute(db, uplink_insert(record, gw))
        except SQLAlchemyError as exc:
            logger.error("uplink insert error: %s (eui: %s)", exc, record.station_eui)

    for slave in record.uplink.decoded_payload.slaves:
        for position, raw in enumerate(slave.sensors):
            try:
                reading = SensorReading.model_validate(raw)
            except ValidationError as exc:
                summary.skipped_invalid += 1
                logger.debug(
                    "skip invalid reading: slave: %d pos: %d (%d error(s)): %r",
                    slave.id,
                    position,
                    exc.error_count(),
                    raw,
                )
                continue

            if not is_known_sensor_type(reading.type):
                summary.skipped_unknown_type += 1
                logger.debug(
                    "skip unknown sensor type: %d idx: %d value: %s",
                    reading.type,
                    reading.index,
                    reading.value,
                )
                continue

            summary.attempted += 1
            row = {
                "time": record.received_at,
                "station_eui": record.station_eui,
                "station_devid": record.station_dev_id,
                "slave_id": slave.id,
                "sensor_type": reading.type,
                "sensor_index": reading.index,
                "value": reading.value,
                "format": reading.format,
                "gateway_id": gw.gateway_id,
                "latitude": gw.latitude,
                "longitude": gw.longitude,
            }
            try:
                rowcount = await _execute(db, measurement_insert(row))
            except SQLAlchemyError as exc:
                summary.failed += 1
                logger.error(
                    "insert error: %s (eui: %s slave: %d type: %d idx: %d)",
                    exc,
                    record.station_eui,
                    slave.id,
                    reading.type,
                    reading.index,
                )
                continue

            if rowcount:
                summary.inserted += 1
            else:
                summary.duplicates += 1

    logger.info(
        "Ingested %d/%d measurements from %s "
        "(%d duplicate, %d failed, %d unknown type, %d invalid)",
        summary.inserted,
        summary.attempted,
        record.station_eui,
        summary.duplicates,
        summary.failed,
        summary.skipped_unknown_type,
        summary.skipped_invalid,
    )
    return summary
