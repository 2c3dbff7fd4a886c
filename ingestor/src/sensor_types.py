"""
Sensor type catalogue.

Maps the sensor type codes reported by station slaves to the physical quantity
and unit they measure.  The ingestor only stores readings whose type is listed
here; newer firmware may report types this catalogue does not know yet, and
those readings are skipped with a debug diagnostic rather than treated as
errors.

CHANGELOG:
- 2026-10-15: Initial creation, types 1-15
"""

from __future__ import annotations

from enum import IntEnum


class SensorType(IntEnum):
    """Physical quantity measured by a sensor."""

    AIR_TEMPERATURE = 1
    HUMIDITY = 2
    PRESSURE = 3
    WIND_SPEED = 4
    WIND_DIRECTION = 5
    CUMULATIVE_RAINFALL = 6
    SOLAR_RADIATION = 7
    UV_INDEX = 8
    LIGHT_INTENSITY = 9
    AIR_QUALITY = 10
    SOIL_MOISTURE = 11
    SOIL_TEMPERATURE = 12
    CANOPY_TEMPERATURE = 13
    WATER_TEMPERATURE = 14
    WATER_LEVEL = 15


_UNITS: dict[SensorType, str] = {
    SensorType.AIR_TEMPERATURE: "°C",
    SensorType.HUMIDITY: "%RH",
    SensorType.PRESSURE: "Pa",
    SensorType.WIND_SPEED: "m/s",
    SensorType.WIND_DIRECTION: "deg",
    SensorType.CUMULATIVE_RAINFALL: "mm",
    SensorType.SOLAR_RADIATION: "W/m²",
    SensorType.UV_INDEX: "index",
    SensorType.LIGHT_INTENSITY: "lux",
    SensorType.AIR_QUALITY: "ppm",
    SensorType.SOIL_MOISTURE: "%",
    SensorType.SOIL_TEMPERATURE: "°C",
    SensorType.CANOPY_TEMPERATURE: "°C",
    SensorType.WATER_TEMPERATURE: "°C",
    SensorType.WATER_LEVEL: "cm",
}

VALID_SENSOR_TYPES: frozenset[int] = frozenset(int(t) for t in SensorType)


def is_known_sensor_type(code: int) -> bool:
    """Return True if *code* is a sensor type this ingestor stores."""
    return code in VALID_SENSOR_TYPES


def unit_for(code: int) -> str | None:
    """Return the engineering unit for *code*, or None if unknown."""
    if not is_known_sensor_type(code):
        return None
    return _UNITS[SensorType(code)]
