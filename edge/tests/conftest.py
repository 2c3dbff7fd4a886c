"""
Shared test fixtures for station frame tests.

Provides hand-assembled frames with their expected decoded content so the
decoder, encoder and CLI suites agree on the same byte vectors.

CHANGELOG:
- 2026-10-12: Replace settings env fixtures with frame fixtures
"""

from __future__ import annotations

import pytest

# slave 1, one sensor: type 1, header 0x20 (format 1, index 0), u16 LE 0x0019
SINGLE_UINT16_FRAME = bytes([0x00, 0x01, 0x01, 0x01, 0x20, 0x19, 0x00])


@pytest.fixture()
def single_uint16_frame() -> bytes:
    """Smallest useful frame: one slave, one UINT16 reading (value 25)."""
    return SINGLE_UINT16_FRAME


@pytest.fixture()
def two_slave_frame() -> bytes:
    """Two slaves exercising every defined format.

    Slave 0x0102:
        type 1, fmt 4 idx 0  -> int16 LE 0xF63C (-2500) / 100 = -25.0
        type 2, fmt 5 idx 1  -> uint16 LE 0x0271 (625) / 10  = 62.5
        type 8, fmt 0 idx 2  -> uint8 7
    Slave 0x0203:
        type 3, fmt 2 idx 0  -> float32 LE 1.5
        type 4, fmt 3 idx 31 -> float64 LE 2.25
        type 6, fmt 1 idx 3  -> uint16 LE 0x1234 = 4660
    """
    return bytes(
        [
            0x01, 0x02, 0x03,
            0x01, 0x80, 0x3C, 0xF6,
            0x02, 0xA1, 0x71, 0x02,
            0x08, 0x02, 0x07,
            0x02, 0x03, 0x03,
            0x03, 0x40, 0x00, 0x00, 0xC0, 0x3F,
            0x04, 0x7F, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x02, 0x40,
            0x06, 0x23, 0x34, 0x12,
        ]
    )  # fmt: skip
