"""
Ingestor daemon: MQTT uplinks -> PostgreSQL/TimescaleDB.

Startup loads IngestorSettings, checks that the database is reachable (fatal
otherwise), connects the MQTT subscriber and then waits for SIGTERM/SIGINT.
Every inbound message is handled as an independent task; the database pool
bounds how many of them write at once.  On shutdown the MQTT client is
disconnected first so no new handlers start, then in-flight handlers are
cancelled and the pool is disposed.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-19: Stop MQTT intake before cancelling in-flight handlers; shared JSON logging
- 2026-10-16: Add --debug flag
- 2026-10-15: Replace poll/upload loops with MQTT ingestion daemon
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from collections.abc import Sequence
from functools import partial
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from edge.src.jsonlog import configure_logging as _configure_json_logging
from ingestor.src.handler import handle_message
from ingestor.src.health import HealthWriter

if TYPE_CHECKING:
    from ingestor.src.config import IngestorSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(debug: bool = False) -> None:
    """Configure structured JSON logging for the ingestor (INFO by default).

    Args:
        debug: Log at DEBUG instead of INFO.
    """
    _configure_json_logging(debug, default_level=logging.INFO)


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def redact_dsn(dsn: str) -> str:
    """Return *dsn* with the password replaced by ``***``."""
    parts = urlsplit(dsn)
    if parts.password is None:
        return dsn
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return parts._replace(netloc=netloc).geturl()


def log_config_summary(settings: IngestorSettings) -> None:
    """Log a config summary at startup, excluding secrets.

    The API key is never logged and the DSN password is redacted.

    Args:
        settings: An IngestorSettings instance.
    """
    logger.info(
        "Ingestor starting with config: "
        "broker=%s://%s:%s, topic=%s, app_id=%s, mqtt_use_auth=%s, "
        "pg_dsn=%s, db_pool_size=%s, record_uplinks=%s, debug=%s",
        settings.ttn_mqtt_protocol,
        settings.ttn_region_host,
        settings.ttn_mqtt_port,
        settings.mqtt_topic,
        settings.ttn_app_id,
        settings.mqtt_use_auth,
        redact_dsn(settings.pg_dsn),
        settings.db_pool_size,
        settings.record_uplinks,
        settings.debug,
    )


def build_subscriber(settings: IngestorSettings):
    """Create the MQTT subscriber described by *settings*."""
    from ingestor.src.transport import MqttSubscriber

    return MqttSubscriber(
        host=settings.ttn_region_host,
        port=settings.ttn_mqtt_port,
        topic=settings.mqtt_topic,
        protocol=settings.ttn_mqtt_protocol,
        username=settings.ttn_app_id if settings.mqtt_use_auth else None,
        password=settings.ttn_api_key if settings.mqtt_use_auth else None,
    )


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


async def run(
    settings: IngestorSettings,
    shutdown_event: asyncio.Event,
    *,
    subscriber=None,
    engine=None,
) -> None:
    """Run the ingestor until *shutdown_event* is set.

    Args:
        settings: Loaded settings.
        shutdown_event: Event that triggers graceful shutdown.
        subscriber: Optional pre-built subscriber (tests).
        engine: Optional pre-built async engine (tests).

    Raises:
        sqlalchemy.exc.SQLAlchemyError, OSError: If the database or the
            broker is unreachable at startup.
    """
    from ingestor.src.db.session import (
        check_connection,
        create_engine,
        create_session_factory,
    )

    if engine is None:
        engine = create_engine(settings)
    try:
        await check_connection(engine)
        logger.info("Database reachable")

        session_factory = create_session_factory(engine)
        health = HealthWriter(settings.health_path)
        handler = partial(
            _handle,
            session_factory,
            record_uplinks=settings.record_uplinks,
            health=health,
        )

        if subscriber is None:
            subscriber = build_subscriber(settings)
        await subscriber.start(handler)
        try:
            logger.info("ingestor running")
            await shutdown_event.wait()
            logger.info("shutdown signal received")
        finally:
            # Intake must stop before the pending set is drained.
            subscriber.stop()
            await subscriber.cancel_pending()
    finally:
        await engine.dispose()
    logger.info("Shutdown complete")


async def _handle(session_factory, topic: str, payload: bytes, **kwargs) -> None:
    await handle_message(session_factory, payload, topic=topic, **kwargs)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


async def async_main(argv: Sequence[str] | None = None) -> None:
    """Async entrypoint: parse flags, load config, run until signalled."""
    parser = argparse.ArgumentParser(
        prog="weather-ingestor",
        description="Ingest weather station uplinks from MQTT into PostgreSQL.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    from ingestor.src.config import IngestorSettings

    settings = IngestorSettings()
    configure_logging(args.debug or settings.debug)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda: _handle_signal(shutdown_event))

    await run(settings, shutdown_event)


def main() -> None:
    """Synchronous entrypoint for the ingestor daemon."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
