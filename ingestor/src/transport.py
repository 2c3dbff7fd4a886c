"""
MQTT subscriber for network server uplinks.

Connects to the network server's MQTT broker with paho-mqtt, subscribes to
the uplink topic on every (re)connect and hands each message to an async
handler on the ingestor's event loop.  paho delivers messages on its own
network thread; they are scheduled onto the loop with
``asyncio.run_coroutine_threadsafe`` and tracked until done, so shutdown can
cancel whatever is still in flight.

Delivery is at-least-once at best (QoS 0 by default); duplicates are absorbed
by the measurement conflict handling, not here.

CHANGELOG:
- 2026-10-19: stop() drops further messages and is idempotent
- 2026-10-16: Track in-flight handlers for cancellation on shutdown
- 2026-10-15: Initial creation
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import ssl
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Any

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, bytes], Awaitable[Any]]

CLIENT_ID_PREFIX = "ttn-uplink-ingestor"
KEEPALIVE_S = 60


def make_client_id(prefix: str = CLIENT_ID_PREFIX) -> str:
    """Client id with a random-enough suffix so restarts never collide."""
    return f"{prefix}-{time.time_ns() % 1_000_000_000}"


def make_tls_context() -> ssl.SSLContext:
    """Default-verified TLS context with TLS 1.2 as the minimum version."""
    ctx = ssl.create_default_context()
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    return ctx


class MqttSubscriber:
    """paho-mqtt subscriber bridging messages onto an asyncio loop.

    Args:
        host: Broker host.
        port: Broker port.
        topic: Topic filter to subscribe to.
        protocol: ``mqtt`` or ``mqtts`` (TLS).
        username: Username, or None to connect anonymously.
        password: Password for *username*.
        qos: Subscription QoS.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        topic: str,
        protocol: str = "mqtt",
        username: str | None = None,
        password: str | None = None,
        qos: int = 0,
    ) -> None:
        self.host = host
        self.port = port
        self.topic = topic
        self.protocol = protocol
        self.username = username
        self.password = password
        self.qos = qos
        self.client_id = make_client_id()

        self._client: mqtt.Client | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._handler: MessageHandler | None = None
        self._pending: set[concurrent.futures.Future[Any]] = set()
        self._lock = threading.Lock()
        self._connected = threading.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _build_client(self) -> mqtt.Client:
        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            protocol=mqtt.MQTTv311,
        )
        if self.protocol.startswith("mqtts"):
            client.tls_set_context(make_tls_context())
        if self.username:
            client.username_pw_set(self.username, self.password)
        client.reconnect_delay_set(min_delay=1, max_delay=60)

        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        return client

    async def start(self, handler: MessageHandler) -> None:
        """Connect to the broker and start paho's network thread.

        Args:
            handler: Coroutine function called as ``handler(topic, payload)``.

        Raises:
            OSError: If the initial connection fails.
        """
        self._loop = asyncio.get_running_loop()
        self._handler = handler
        self._client = self._build_client()

        logger.info("Connecting to %s://%s:%d", self.protocol, self.host, self.port)
        await asyncio.to_thread(self._client.connect, self.host, self.port, KEEPALIVE_S)
        self._client.loop_start()

    def stop(self) -> None:
        """Stop intake, disconnect and join paho's network thread.

        Messages arriving after this call are dropped.  Safe to call twice.
        """
        self._handler = None
        client, self._client = self._client, None
        if client is None:
            return
        client.disconnect()
        client.loop_stop()
        self._connected.clear()
        logger.info("MQTT client disconnected")

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    @property
    def pending(self) -> int:
        """Number of message handlers still running."""
        with self._lock:
            return len(self._pending)

    async def cancel_pending(self, timeout: float = 5.0) -> None:
        """Cancel in-flight message handlers and wait for them to finish."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return
        logger.info("Cancelling %d in-flight message handler(s)", len(pending))
        for fut in pending:
            fut.cancel()
        await asyncio.wait([asyncio.wrap_future(f) for f in pending], timeout=timeout)

    # ------------------------------------------------------------------
    # paho callbacks (network thread)
    # ------------------------------------------------------------------

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if reason_code.is_failure:
            self._connected.clear()
            logger.error("mqtt connect refused: %s", reason_code)
            return
        self._connected.set()
        result, _mid = client.subscribe(self.topic, qos=self.qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error("subscribe error: %s", mqtt.error_string(result))
        else:
            logger.info("subscribed to %s", self.topic)

    def _on_disconnect(
        self, client, userdata, disconnect_flags, reason_code, properties=None
    ) -> None:
        self._connected.clear()
        if reason_code.is_failure:
            logger.warning("mqtt connection lost: %s", reason_code)

    def _on_message(self, client, userdata, msg) -> None:
        logger.debug(
            "mqtt topic: %s qos: %d retained: %s", msg.topic, msg.qos, msg.retain
        )
        handler, loop = self._handler, self._loop
        if loop is None or handler is None or loop.is_closed():
            logger.warning("Dropping message on %s: subscriber not running", msg.topic)
            return
        fut = asyncio.run_coroutine_threadsafe(handler(msg.topic, msg.payload), loop)
        with self._lock:
            self._pending.add(fut)
        fut.add_done_callback(self._on_handler_done)

    def _on_handler_done(self, fut: concurrent.futures.Future[Any]) -> None:
        with self._lock:
            self._pending.discard(fut)
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            logger.error("Message handler failed", exc_info=exc)
