"""
Pydantic models for decoded station frames.

A station uplink carries one block per slave device on the station bus; each
block holds an ordered list of sensor readings.  These models are the output of
the binary decoder and, once the network server has embedded them in an uplink
envelope, the input of the ingestor.

Field names follow the JSON emitted by the payload formatter (``id``,
``sensors``, ``type``, ``index``, ``format``, ``value``) so that the same models
validate both sides.

CHANGELOG:
- 2026-10-19: Formatter output renders NaN values as null
- 2026-10-14: Add DecodedPayload.to_formatter_output()
- 2026-10-12: Initial creation
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SensorReading(BaseModel):
    """A single sensor value reported by a slave.

    Attributes:
        type: Domain sensor type code (physical quantity measured).
        index: Sensor index on the slave (0-31), unpacked from the header.
        format: Wire format code the value was encoded with.
        value: Decoded value in engineering units.
    """

    type: int
    index: int
    format: int
    value: float


class SlaveFrame(BaseModel):
    """All readings reported by one slave in a single uplink."""

    id: int
    sensors: list[SensorReading] = Field(default_factory=list)


class DecodedPayload(BaseModel):
    """Result of decoding one binary frame.

    ``errors`` being non-empty means decoding stopped early; ``slaves`` then
    holds every block completed before the fault.  ``warnings`` are
    informational only.
    """

    slaves: list[SlaveFrame] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when the frame decoded without structural errors."""
        return not self.errors

    def to_formatter_output(self) -> dict[str, Any]:
        """Render in the network server's uplink formatter result shape.

        Values are JSON-safe: NaN and infinities become ``None``.
        """
        return {
            "data": {"slaves": [s.model_dump(mode="json") for s in self.slaves]},
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }
