"""
Envelope normalizer -- network server uplink document to canonical record.

Exactly one envelope shape is recognised: the direct uplink document
published on ``.../devices/{device_id}/up`` (and POSTed by uplink webhooks),
identified by a non-empty ``end_device_ids.dev_eui``.  Anything else -- invalid
JSON, a non-object document, fields of the wrong type, a missing device EUI --
raises :class:`UnknownEnvelopeShape`.  The recogniser is closed on purpose: a
new envelope variant fails loudly instead of half-matching.

The already-decoded sensor payload (``uplink_message.decoded_payload``) keeps
its slave structure, but each reading is left as the raw object the network
server sent.  Readings are validated one at a time during ingestion, so a
single malformed reading (a ``null`` value for a NaN sentinel, say) costs
only that reading and not the whole uplink.

CHANGELOG:
- 2026-10-19: Keep readings raw; validate them individually at ingest
- 2026-10-16: Truncate nanosecond timestamps before parsing
- 2026-10-15: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

_PAYLOAD_LOG_LIMIT = 2048
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class NormalizeError(Exception):
    """Base class for envelope normalization failures."""


class UnknownEnvelopeShape(NormalizeError):
    """The message is not a supported uplink envelope.

    Attributes:
        reason: Short description of why the document was rejected.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(f"unknown uplink shape (expecting direct /up): {reason}")
        self.reason = reason


# ---------------------------------------------------------------------------
# Timestamp handling
# ---------------------------------------------------------------------------


def _trim_fraction(value: Any) -> Any:
    """Cut RFC 3339 fractions to microseconds (network servers send nanoseconds)."""
    if isinstance(value, str):
        return _FRACTION_RE.sub(r"\1", value, count=1)
    return value


Timestamp = Annotated[datetime | None, BeforeValidator(_trim_fraction)]


def _as_utc(ts: datetime | None) -> datetime | None:
    """Return *ts* in UTC, or None for missing / zero timestamps."""
    if ts is None or ts.year <= 1:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


# ---------------------------------------------------------------------------
# Envelope models
# ---------------------------------------------------------------------------


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ApplicationIds(_Model):
    application_id: str = ""


class EndDeviceIds(_Model):
    device_id: str = ""
    dev_eui: str = ""
    application_ids: ApplicationIds = Field(default_factory=ApplicationIds)


class GatewayIds(_Model):
    gateway_id: str = ""
    eui: str = ""


class Location(_Model):
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None


class RxMetadata(_Model):
    """Reception metadata from one gateway that heard the uplink."""

    gateway_ids: GatewayIds = Field(default_factory=GatewayIds)
    rssi: int | None = None
    snr: float | None = None
    time: Timestamp = None
    location: Location | None = None


class LoraDataRate(_Model):
    bandwidth: int | None = None
    spreading_factor: int | None = None
    coding_rate: str = ""


class DataRate(_Model):
    lora: LoraDataRate = Field(default_factory=LoraDataRate)


class UplinkSettings(_Model):
    """Radio parameters of the uplink (``frequency`` arrives as a string)."""

    data_rate: DataRate = Field(default_factory=DataRate)
    frequency: int | None = None


class RawSlave(_Model):
    """One slave block of ``decoded_payload`` with unvalidated readings."""

    id: int
    sensors: list[Any] = Field(default_factory=list)


class RawDecodedPayload(_Model):
    slaves: list[RawSlave] = Field(default_factory=list)


class UplinkMessage(_Model):
    f_port: int = 0
    frm_payload: str = ""
    decoded_payload: RawDecodedPayload = Field(default_factory=RawDecodedPayload)
    rx_metadata: list[RxMetadata] = Field(default_factory=list)
    settings: UplinkSettings = Field(default_factory=UplinkSettings)
    received_at: Timestamp = None


class UplinkEnvelope(_Model):
    """Direct uplink document as published by the network server."""

    end_device_ids: EndDeviceIds = Field(default_factory=EndDeviceIds)
    received_at: Timestamp = None
    uplink_message: UplinkMessage = Field(default_factory=UplinkMessage)
    simulated: bool = False


# ---------------------------------------------------------------------------
# Canonical record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CanonicalRecord:
    """Normalized uplink handed to the ingestion pipeline.

    Attributes:
        received_at: Measurement timestamp (UTC) shared by every reading.
        station_eui: Upper-cased device EUI of the station.
        station_dev_id: Network server device id, None when empty.
        application_id: Network server application id, None when empty.
        uplink: The uplink message (decoded payload, radio metadata).
        simulated: True for uplinks simulated from the network console.
    """

    received_at: datetime
    station_eui: str
    station_dev_id: str | None
    application_id: str | None
    uplink: UplinkMessage
    simulated: bool = False


def _none_if_empty(value: str) -> str | None:
    return value or None


def _log_rejected(raw: bytes | str | Mapping[str, Any]) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    if isinstance(raw, Mapping):
        text = json.dumps(raw, default=str)
    elif isinstance(raw, (bytes, bytearray)):
        text = bytes(raw).decode("utf-8", errors="replace")
    else:
        text = raw
    if len(text) > _PAYLOAD_LOG_LIMIT:
        logger.debug("payload head: %s", text[:_PAYLOAD_LOG_LIMIT])
    else:
        logger.debug("payload: %s", text)


def _load(raw: bytes | str | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    try:
        doc = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise UnknownEnvelopeShape("payload is not valid JSON") from exc
    if not isinstance(doc, Mapping):
        raise UnknownEnvelopeShape("payload is not a JSON object")
    return doc


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize(
    raw: bytes | str | Mapping[str, Any],
    *,
    now: datetime | None = None,
) -> CanonicalRecord:
    """Normalize one transport message into a :class:`CanonicalRecord`.

    The timestamp is the first one present of ``uplink_message.received_at``,
    the envelope ``received_at`` and *now* (processing time, defaults to the
    current UTC time).

    Args:
        raw: Message payload (JSON bytes/str) or an already-parsed document.
        now: Processing time fallback, injectable for tests.

    Returns:
        The canonical record.

    Raises:
        UnknownEnvelopeShape: If *raw* is not a direct uplink envelope.
    """
    try:
        doc = _load(raw)
        try:
            envelope = UplinkEnvelope.model_validate(doc)
        except ValidationError as exc:
            raise UnknownEnvelopeShape(
                f"{exc.error_count()} invalid field(s), first at "
                f"{'.'.join(str(p) for p in exc.errors()[0]['loc'])}"
            ) from exc
        if not envelope.end_device_ids.dev_eui:
            raise UnknownEnvelopeShape("missing end_device_ids.dev_eui")
    except UnknownEnvelopeShape:
        _log_rejected(raw)
        raise

    ids = envelope.end_device_ids
    when = (
        _as_utc(envelope.uplink_message.received_at)
        or _as_utc(envelope.received_at)
        or _as_utc(now)
        or datetime.now(tz=UTC)
    )
    logger.debug("parsed direct /up for dev_eui: %s", ids.dev_eui)

    return CanonicalRecord(
        received_at=when,
        station_eui=ids.dev_eui.upper(),
        station_dev_id=_none_if_empty(ids.device_id),
        application_id=_none_if_empty(ids.application_ids.application_id),
        uplink=envelope.uplink_message,
        simulated=envelope.simulated,
    )
