"""
FastAPI application for webhook-delivered uplinks.

Alternative transport to the MQTT daemon: the network server's webhook
integration POSTs each uplink to /v1/uplinks.  Settings are loaded and the
database pool is created in the lifespan; the pool is disposed on shutdown.

Run with:
    uvicorn ingestor.src.api.main:app

CHANGELOG:
- 2026-10-16: Register uplinks router, create engine in lifespan
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ingestor.src.api.health import router as health_router
from ingestor.src.api.uplinks import router as uplinks_router
from ingestor.src.auth import BearerAuth
from ingestor.src.config import WebhookSettings
from ingestor.src.db.session import create_engine, create_session_factory
from ingestor.src.health import HealthWriter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: settings, auth and database pool.

    Startup:
        - Loads WebhookSettings (missing PG_DSN is fatal).
        - Creates the async engine and session factory.

    Shutdown:
        - Disposes the engine.
    """
    settings = WebhookSettings()
    if settings.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    engine = create_engine(settings)
    app.state.settings = settings
    app.state.session_factory = create_session_factory(engine)
    app.state.auth = BearerAuth(settings.webhook_token)
    app.state.health = HealthWriter(settings.health_path)
    if not app.state.auth.enabled:
        logger.warning("WEBHOOK_TOKEN not set, /v1/uplinks accepts unauthenticated calls")

    logger.info("Weather ingestor webhook API ready")
    yield
    await engine.dispose()
    logger.info("Weather ingestor webhook API shutting down")


app = FastAPI(
    title="Weather Station Ingestor",
    description="Webhook ingestion of weather station uplinks.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(uplinks_router)
