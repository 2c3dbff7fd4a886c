"""
Ingestor configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Variable names match the deployment environment of the original container
(``PG_DSN``, ``TTN_APP_ID``, ``TTN_API_KEY``, ``TTN_REGION_HOST``,
``MQTT_TOPIC`` ...).  Missing or invalid values raise
``pydantic.ValidationError`` at startup, which is fatal to the process.

CHANGELOG:
- 2026-10-16: Split webhook settings from MQTT settings
- 2026-10-15: Initial creation

TODO:
- None
"""

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings


class DatabaseSettings(BaseSettings):
    """Settings shared by every ingestor entrypoint.

    Attributes:
        pg_dsn: PostgreSQL connection string. ``postgres://`` and
            ``postgresql://`` URLs are accepted and rewritten for asyncpg.
        db_pool_size: Maximum number of pooled connections. Also the
            maximum number of concurrent in-flight writes.
        db_pool_timeout_s: Seconds a handler waits for a free connection.
        record_uplinks: Also store per-uplink RF statistics rows.
        debug: Enable debug logging (unknown sensor types, rejected payloads).
        health_path: Path of the JSON health file.
    """

    pg_dsn: str
    db_pool_size: int = 10
    db_pool_timeout_s: float = 30.0
    record_uplinks: bool = False
    debug: bool = False
    health_path: str = "/tmp/ingestor-health.json"

    @field_validator("pg_dsn")
    @classmethod
    def pg_dsn_must_be_postgres(cls, v: str) -> str:
        """Validate that the DSN targets PostgreSQL."""
        if not v.startswith(("postgres://", "postgresql://", "postgresql+asyncpg://")):
            raise ValueError("PG_DSN must be a postgres:// or postgresql:// URL")
        return v

    @field_validator("db_pool_size")
    @classmethod
    def pool_size_must_be_valid(cls, v: int) -> int:
        """Validate pool size is between 1 and 100."""
        if v < 1 or v > 100:
            raise ValueError("DB_POOL_SIZE must be >= 1 and <= 100")
        return v

    @field_validator("db_pool_timeout_s")
    @classmethod
    def pool_timeout_must_be_positive(cls, v: float) -> float:
        """Validate pool timeout is positive."""
        if v <= 0:
            raise ValueError("DB_POOL_TIMEOUT_S must be > 0")
        return v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class IngestorSettings(DatabaseSettings):
    """MQTT daemon configuration.

    Attributes:
        ttn_app_id: Network server application id (also the MQTT username).
        ttn_api_key: Network server API key (MQTT password). Never logged.
        ttn_region_host: Broker host, e.g. ``au1.cloud.thethings.network``.
        ttn_mqtt_port: Broker port (default 1883).
        mqtt_use_auth: Send username/password on connect.
        ttn_mqtt_protocol: ``mqtt`` or ``mqtts`` (TLS 1.2+).
        mqtt_topic: Topic filter, e.g. ``v3/app@ttn/devices/+/up``.
    """

    ttn_app_id: str
    ttn_api_key: str
    ttn_region_host: str
    ttn_mqtt_port: int = 1883
    mqtt_use_auth: bool = True
    ttn_mqtt_protocol: Literal["mqtt", "mqtts"] = "mqtt"
    mqtt_topic: str

    @field_validator("ttn_mqtt_port")
    @classmethod
    def mqtt_port_must_be_valid(cls, v: int) -> int:
        """Validate broker port is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("TTN_MQTT_PORT must be between 1 and 65535")
        return v

    @field_validator("ttn_mqtt_protocol", mode="before")
    @classmethod
    def protocol_lowercase(cls, v: object) -> object:
        """Accept ``MQTTS``/``Mqtt`` spellings."""
        return v.lower() if isinstance(v, str) else v


class WebhookSettings(DatabaseSettings):
    """Webhook API configuration.

    Attributes:
        webhook_token: Bearer token expected on ``POST /v1/uplinks``.
            Empty disables the check.
        max_request_bytes: Upper bound on the uplink request body.
    """

    webhook_token: str = ""
    max_request_bytes: int = 262144

    @field_validator("max_request_bytes")
    @classmethod
    def max_request_bytes_must_be_positive(cls, v: int) -> int:
        """Validate body limit is positive."""
        if v < 1:
            raise ValueError("MAX_REQUEST_BYTES must be >= 1")
        return v
