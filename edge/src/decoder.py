"""
Binary decoder for station telemetry frames.

Frame layout (repeated until fewer than 3 bytes remain)::

    +---------+---------+-------+----------------------------------+
    | slave id (BE u16) | count | count x sensor                   |
    +---------+---------+-------+----------------------------------+

    sensor := type (u8) | header (u8) | value (width from format)
    header := format (3 bits) | index (5 bits)

The decoder never raises on frame content.  Structural problems are returned
in ``DecodedPayload.errors`` together with every slave block completed before
the fault; a trailing remainder too short for a slave header only produces a
warning.  Truncation is fail-fast: once a header or value is cut short the
byte alignment of everything after it is lost, so nothing further is read.

Bad *input types* are different: a ``str``, or an int sequence holding a value
outside 0-255, is a caller bug rather than a wire fault and raises
``TypeError`` or ``ValueError`` instead of being reported in ``errors``.

This is a pure function: no I/O, no clock, no shared mutable state.

CHANGELOG:
- 2026-10-19: Document TypeError/ValueError for invalid input types
- 2026-10-14: Add decode_uplink() adapter for the network server formatter API
- 2026-10-12: Initial creation
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from edge.src.formats import decode_value, lookup, split_header
from edge.src.models import DecodedPayload, SensorReading, SlaveFrame

logger = logging.getLogger(__name__)

SLAVE_HEADER_LEN = 3
SENSOR_HEADER_LEN = 2

ERR_TRUNCATED_HEADER = "Truncated sensor header"
ERR_TRUNCATED_VALUE = "Truncated sensor value"
WARN_EXTRA_BYTES = "Extra bytes at end of payload"


def _unknown_format(code: int) -> str:
    return f"Unknown format {code}"


def _as_bytes(payload: bytes | bytearray | memoryview | Sequence[int]) -> bytes:
    """Coerce the accepted input types to ``bytes``.

    Raises:
        TypeError: If *payload* is not bytes-like or a sequence of ints.
        ValueError: If a sequence element is outside 0-255.
    """
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, (bytearray, memoryview)):
        return bytes(payload)
    if isinstance(payload, str):
        raise TypeError("decode() expects bytes, not str; decode hex first")
    return bytes(payload)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def decode(payload: bytes | bytearray | memoryview | Sequence[int]) -> DecodedPayload:
    """Decode a binary station frame into per-slave sensor readings.

    Args:
        payload: Raw frame bytes (or a sequence of byte values, as the
            network server hands them to payload formatters).

    Returns:
        A :class:`DecodedPayload`.  ``errors`` is non-empty when decoding
        stopped early; ``slaves`` still holds the blocks decoded so far.

    Raises:
        TypeError: If *payload* is a ``str`` or not bytes-like.
        ValueError: If an int in *payload* is outside 0-255.
    """
    data = _as_bytes(payload)
    size = len(data)
    slaves: list[SlaveFrame] = []
    warnings: list[str] = []
    errors: list[str] = []
    pos = 0

    def _fail(message: str) -> DecodedPayload:
        errors.append(message)
        logger.debug(
            "Frame decode stopped at byte %d/%d: %s (%d slaves kept)",
            pos,
            size,
            message,
            len(slaves),
        )
        return DecodedPayload(slaves=slaves, warnings=warnings, errors=errors)

    while pos + SLAVE_HEADER_LEN <= size:
        slave_id = int.from_bytes(data[pos : pos + 2], "big")
        sensor_count = data[pos + 2]
        pos += SLAVE_HEADER_LEN
        sensors: list[SensorReading] = []

        for _ in range(sensor_count):
            if pos + SENSOR_HEADER_LEN > size:
                return _fail(ERR_TRUNCATED_HEADER)

            sensor_type = data[pos]
            fmt_code, index = split_header(data[pos + 1])
            pos += SENSOR_HEADER_LEN

            fmt_def = lookup(fmt_code)
            if fmt_def is None:
                return _fail(_unknown_format(fmt_code))
            if pos + fmt_def.width > size:
                return _fail(ERR_TRUNCATED_VALUE)

            value = decode_value(fmt_def, data[pos : pos + fmt_def.width])
            pos += fmt_def.width

            sensors.append(
                SensorReading(type=sensor_type, index=index, format=fmt_code, value=value)
            )

        slaves.append(SlaveFrame(id=slave_id, sensors=sensors))

    if pos != size:
        warnings.append(WARN_EXTRA_BYTES)
        logger.debug("Frame has %d trailing byte(s) after last slave", size - pos)

    return DecodedPayload(slaves=slaves, warnings=warnings, errors=errors)


def decode_uplink(input: dict[str, Any]) -> dict[str, Any]:  # noqa: A002
    """Network server uplink formatter entry point.

    Args:
        input: ``{"bytes": [...], "fPort": n}`` as passed by the network
            server to uplink payload formatters.

    Returns:
        ``{"data": {"slaves": [...]}, "warnings": [...], "errors": [...]}``.
    """
    return decode(input.get("bytes") or b"").to_formatter_output()
