"""
Sensor value format table -- single source of truth for the wire encoding.

Every sensor value in a station frame is preceded by a packed header byte
whose top three bits select one of the formats below.  The format decides how
many value bytes follow and how they are turned into a float.  All multi-byte
values are little-endian, even though the slave id that opens each slave block
is big-endian.

    code  name          width  rule
    ----  ------------  -----  ----------------------------------------
    0     UINT8         1      unsigned 8-bit
    1     UINT16        2      unsigned 16-bit LE
    2     FLOAT32       4      IEEE-754 single LE
    3     FLOAT64       8      IEEE-754 double LE
    4     SFIX16_2DP    2      signed 16-bit LE / 100
    5     UFIX16_1DP    2      unsigned 16-bit LE / 10

The table is built once at import time and exposed read-only, so concurrent
readers never need a lock.

CHANGELOG:
- 2026-10-12: Initial creation, format codes 0-5
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType

# ---------------------------------------------------------------------------
# Packed header layout
# ---------------------------------------------------------------------------

FORMAT_SHIFT = 5
INDEX_MASK = 0x1F
MAX_INDEX = INDEX_MASK


class SensorFormat(IntEnum):
    """3-bit format selector carried in the top bits of the header byte."""

    UINT8 = 0
    UINT16 = 1
    FLOAT32 = 2
    FLOAT64 = 3
    SFIX16_2DP = 4
    UFIX16_1DP = 5


# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FormatDef:
    """Definition of one sensor value format.

    Attributes:
        code: Wire format code (0-7 fits the header, 0-5 are defined).
        name: Short identifier, mirrors :class:`SensorFormat`.
        width: Number of value bytes following the header.
        struct_fmt: ``struct`` format string used to unpack the value bytes.
        divisor: Fixed-point divisor applied after unpacking, or ``None``
            for plain integer and float formats.
    """

    code: int
    name: str
    width: int
    struct_fmt: str
    divisor: int | None = None

    def __post_init__(self) -> None:  # noqa: D105
        if struct.calcsize(self.struct_fmt) != self.width:
            msg = (
                f"Format '{self.name}': struct '{self.struct_fmt}' does not "
                f"match width {self.width}"
            )
            raise ValueError(msg)


_FORMAT_DEFS: list[FormatDef] = [
    FormatDef(SensorFormat.UINT8, "UINT8", 1, "<B"),
    FormatDef(SensorFormat.UINT16, "UINT16", 2, "<H"),
    FormatDef(SensorFormat.FLOAT32, "FLOAT32", 4, "<f"),
    FormatDef(SensorFormat.FLOAT64, "FLOAT64", 8, "<d"),
    FormatDef(SensorFormat.SFIX16_2DP, "SFIX16_2DP", 2, "<h", divisor=100),
    FormatDef(SensorFormat.UFIX16_1DP, "UFIX16_1DP", 2, "<H", divisor=10),
]

FORMATS: MappingProxyType[int, FormatDef] = MappingProxyType(
    {int(fd.code): fd for fd in _FORMAT_DEFS}
)
"""Read-only mapping of format code -> :class:`FormatDef`."""


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def lookup(code: int) -> FormatDef | None:
    """Return the format definition for *code*, or ``None`` if unknown."""
    return FORMATS.get(code)


def split_header(header: int) -> tuple[int, int]:
    """Unpack a sensor header byte into ``(format_code, index)``."""
    return header >> FORMAT_SHIFT, header & INDEX_MASK


def decode_value(fmt_def: FormatDef, raw: bytes) -> float:
    """Decode exactly ``fmt_def.width`` bytes into a float.

    Args:
        fmt_def: Format of the value.
        raw: Value bytes, length must equal ``fmt_def.width``.

    Returns:
        The decoded value, divided by the fixed-point divisor when the
        format defines one.
    """
    (value,) = struct.unpack(fmt_def.struct_fmt, raw)
    if fmt_def.divisor is not None:
        return value / fmt_def.divisor
    return float(value)
