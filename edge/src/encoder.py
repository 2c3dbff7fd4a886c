"""
Frame encoder -- the inverse of :mod:`edge.src.decoder`.

Used by station simulators and bench tooling to produce frames that the
payload formatter and the ingestor accept.  Fixed-point formats are scaled by
their divisor and rounded to the nearest integer; values that do not fit the
selected format raise ``ValueError`` instead of being clipped.

CHANGELOG:
- 2026-10-12: Initial creation
"""

from __future__ import annotations

import math
import struct
from collections.abc import Iterable

from edge.src.formats import FORMAT_SHIFT, MAX_INDEX, SensorFormat, lookup
from edge.src.models import SensorReading, SlaveFrame

_INT_RANGES: dict[str, tuple[int, int]] = {
    "<B": (0, 0xFF),
    "<H": (0, 0xFFFF),
    "<h": (-0x8000, 0x7FFF),
}


def pack_header(fmt: int, index: int) -> int:
    """Pack a format code and sensor index into one header byte."""
    if lookup(fmt) is None:
        raise ValueError(f"Unknown format {fmt}")
    if not 0 <= index <= MAX_INDEX:
        raise ValueError(f"Sensor index {index} outside 0-{MAX_INDEX}")
    return (fmt << FORMAT_SHIFT) | index


def encode_value(fmt: int, value: float) -> bytes:
    """Encode *value* with format *fmt* (little-endian)."""
    fmt_def = lookup(fmt)
    if fmt_def is None:
        raise ValueError(f"Unknown format {fmt}")

    if fmt in (SensorFormat.FLOAT32, SensorFormat.FLOAT64):
        return struct.pack(fmt_def.struct_fmt, value)

    scaled = value * fmt_def.divisor if fmt_def.divisor is not None else value
    if not math.isfinite(scaled):
        raise ValueError(f"Cannot encode non-finite value {value!r} as {fmt_def.name}")
    raw = round(scaled)
    lo, hi = _INT_RANGES[fmt_def.struct_fmt]
    if not lo <= raw <= hi:
        raise ValueError(f"Value {value!r} out of range for {fmt_def.name}")
    return struct.pack(fmt_def.struct_fmt, raw)


def encode_reading(reading: SensorReading) -> bytes:
    """Encode one sensor: type byte, header byte, value bytes."""
    if not 0 <= reading.type <= 0xFF:
        raise ValueError(f"Sensor type {reading.type} does not fit one byte")
    header = pack_header(reading.format, reading.index)
    return bytes((reading.type, header)) + encode_value(reading.format, reading.value)


def encode_slaves(slaves: Iterable[SlaveFrame]) -> bytes:
    """Encode slave blocks into a complete frame."""
    out = bytearray()
    for slave in slaves:
        if not 0 <= slave.id <= 0xFFFF:
            raise ValueError(f"Slave id {slave.id} does not fit 16 bits")
        if len(slave.sensors) > 0xFF:
            raise ValueError(f"Slave {slave.id} has more than 255 sensors")
        out += slave.id.to_bytes(2, "big")
        out.append(len(slave.sensors))
        for reading in slave.sensors:
            out += encode_reading(reading)
    return bytes(out)


def to_hex(payload: bytes) -> str:
    """Uppercase hex rendering of a frame."""
    return payload.hex().upper()
