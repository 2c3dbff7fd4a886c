"""
SQLAlchemy ORM models for the telemetry database.

Describes the storage boundary the ingestor writes to.  The schema itself
(TimescaleDB hypertables, continuous aggregates, seed data) is owned by the
database deployment; these models only need to match its column names and
conflict targets.

Dimension tables (stations, gateways) are upserted with last-write-wins
semantics.  The measurements hypertable is append-only: its uniqueness tuple
(time, station_eui, slave_id, sensor_type, sensor_index) is mapped as the
composite primary key so that ``ON CONFLICT DO NOTHING`` makes redelivered
uplinks a no-op.

CHANGELOG:
- 2026-10-16: Add Uplink RF statistics model
- 2026-10-15: Initial creation

TODO:
- None
"""

import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Double,
    Integer,
    SmallInteger,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

MEASUREMENT_KEY = ("time", "station_eui", "slave_id", "sensor_type", "sensor_index")
"""Uniqueness tuple of the measurements table (conflict target)."""


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all ingestor ORM models."""

    pass


class Station(Base):
    """A field weather station, keyed by its upper-case device EUI."""

    __tablename__ = "stations"

    station_eui: Mapped[str] = mapped_column(Text, primary_key=True)
    application_id: Mapped[str] = mapped_column(Text, nullable=False)
    station_devid: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        """Return string representation of the Station."""
        return (
            f"Station(station_eui={self.station_eui!r}, "
            f"application_id={self.application_id!r})"
        )


class Gateway(Base):
    """A LoRaWAN gateway that relayed at least one uplink."""

    __tablename__ = "gateways"

    gateway_id: Mapped[str] = mapped_column(Text, primary_key=True)
    gateway_eui: Mapped[str | None] = mapped_column(Text, nullable=True)


class Measurement(Base):
    """One sensor reading from one slave of one station.

    Attributes:
        time: Uplink receive time in UTC (shared by the whole uplink).
        station_eui: Station device EUI.
        station_devid: Network server device id (nullable).
        slave_id: Slave address on the station bus.
        sensor_type: Sensor type code (1-15).
        sensor_index: Sensor index on the slave (0-31).
        value: Decoded value in engineering units.
        format: Wire format code the value was transmitted with.
        gateway_id: Gateway from the first reception metadata entry.
        latitude: Gateway latitude from the same entry (nullable).
        longitude: Gateway longitude from the same entry (nullable).
    """

    __tablename__ = "measurements"

    time: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        primary_key=True,
    )
    station_eui: Mapped[str] = mapped_column(Text, primary_key=True)
    station_devid: Mapped[str | None] = mapped_column(Text, nullable=True)
    slave_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sensor_type: Mapped[int] = mapped_column(SmallInteger, primary_key=True)
    sensor_index: Mapped[int] = mapped_column(SmallInteger, primary_key=True)
    value: Mapped[float] = mapped_column(Double, nullable=False)
    format: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    gateway_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Double, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Double, nullable=True)

    def __repr__(self) -> str:
        """Return string representation of the Measurement."""
        return (
            f"Measurement(time={self.time!r}, station_eui={self.station_eui!r}, "
            f"slave_id={self.slave_id!r}, sensor_type={self.sensor_type!r}, "
            f"sensor_index={self.sensor_index!r}, value={self.value!r})"
        )


class Uplink(Base):
    """RF statistics of one received uplink (optional, not de-duplicated)."""

    __tablename__ = "uplinks"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    event_time: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    station_eui: Mapped[str] = mapped_column(Text, nullable=False)
    gateway_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    rssi: Mapped[int | None] = mapped_column(Integer, nullable=True)
    snr: Mapped[float | None] = mapped_column(Double, nullable=True)
    frequency_hz: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    sf: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    bandwidth_hz: Mapped[int | None] = mapped_column(Integer, nullable=True)
    coding_rate: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Double, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Double, nullable=True)
