"""
Tests for the sensor value format table.

CHANGELOG:
- 2026-10-12: Initial creation
"""

from __future__ import annotations

import struct

import pytest
from edge.src.formats import (
    FORMATS,
    FormatDef,
    SensorFormat,
    decode_value,
    lookup,
    split_header,
)


class TestFormatTable:
    """The table defines exactly codes 0-5 with their wire widths."""

    def test_defined_codes(self) -> None:
        assert sorted(FORMATS) == [0, 1, 2, 3, 4, 5]

    @pytest.mark.parametrize(
        ("code", "width"),
        [(0, 1), (1, 2), (2, 4), (3, 8), (4, 2), (5, 2)],
    )
    def test_widths(self, code: int, width: int) -> None:
        assert FORMATS[code].width == width

    def test_divisors(self) -> None:
        assert FORMATS[SensorFormat.SFIX16_2DP].divisor == 100
        assert FORMATS[SensorFormat.UFIX16_1DP].divisor == 10
        assert all(FORMATS[c].divisor is None for c in range(4))

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            FORMATS[6] = FORMATS[0]  # type: ignore[index]

    def test_unknown_codes(self) -> None:
        assert lookup(6) is None
        assert lookup(7) is None

    def test_mismatched_struct_width_rejected(self) -> None:
        with pytest.raises(ValueError, match="does not match width"):
            FormatDef(9, "BROKEN", 3, "<H")


class TestHeader:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [(0x20, (1, 0)), (0x00, (0, 0)), (0xFF, (7, 31)), (0xA5, (5, 5))],
    )
    def test_split_header(self, header: int, expected: tuple[int, int]) -> None:
        assert split_header(header) == expected


class TestDecodeValue:
    def test_uint16_little_endian(self) -> None:
        assert decode_value(FORMATS[1], b"\x19\x00") == 25.0

    def test_float32(self) -> None:
        assert decode_value(FORMATS[2], struct.pack("<f", 0.5)) == 0.5

    def test_signed_fixed_point(self) -> None:
        assert decode_value(FORMATS[4], struct.pack("<h", -150)) == pytest.approx(-1.5)

    def test_unsigned_fixed_point(self) -> None:
        assert decode_value(FORMATS[5], struct.pack("<H", 215)) == pytest.approx(21.5)

    def test_returns_float_for_integer_formats(self) -> None:
        assert isinstance(decode_value(FORMATS[0], b"\x03"), float)
