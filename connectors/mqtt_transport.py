"""
Module: connectors.mqtt_transport

Publish/subscribe transport adapter for simulation events. Wraps a single
paho-mqtt client: connect, fire-and-forget publish, disconnect. Connection
status transitions are fanned out through a StatusBus.
"""

import json
import logging
import secrets
from collections.abc import Callable
from typing import Any, Protocol

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from config.config import BrokerConfig
from models.enums import ConnectionStatus
from utils.event_bus import StatusBus, StatusCallback

logger = logging.getLogger(__name__)


class PublishTransport(Protocol):
    """Contract the simulation session relies on."""

    @property
    def status(self) -> str: ...

    def connect(self, status_sink: StatusCallback | None = None) -> None: ...

    def publish(self, payload: Any, topic: str | None = None) -> str | None: ...

    def disconnect(self) -> None: ...


def serialize_payload(payload: Any) -> str:
    """Canonical compact JSON text for a payload (dict or event model)."""
    if hasattr(payload, "to_payload"):
        payload = payload.to_payload()
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class MqttTransport:
    """
    MQTT implementation of the publish transport.

    ``connect`` returns immediately after reporting ``Connecting``; paho's network
    thread then reports ``Connected``, ``Error: <detail>`` or ``Disconnected`` and
    keeps retrying on its own at ``reconnect_period``. ``publish`` only sends while
    connected and otherwise drops the message, returning None.
    """

    def __init__(
        self,
        config: BrokerConfig | None = None,
        client_factory: Callable[[str], mqtt.Client] | None = None,
    ):
        self.config = config or BrokerConfig()
        self.status_bus = StatusBus()
        self._client_factory = client_factory or self._build_client
        self._client: mqtt.Client | None = None
        self._connected = False
        self.sent = 0
        self.dropped = 0

    @property
    def status(self) -> str:
        return self.status_bus.last_status or ConnectionStatus.DISCONNECTED.value

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._connected

    @property
    def broker_url(self) -> str:
        scheme = "ws" if self.config.transport == "websockets" else "mqtt"
        return f"{scheme}://{self.config.host}:{self.config.port}"

    def _build_client(self, client_id: str) -> mqtt.Client:
        client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=client_id,
            clean_session=True,
            transport=self.config.transport,
        )
        delay = max(1, int(round(self.config.reconnect_period)))
        client.reconnect_delay_set(min_delay=delay, max_delay=delay)
        client.connect_timeout = self.config.connect_timeout
        return client

    def _set_status(self, status: str) -> None:
        self.status_bus.publish(status)

    def connect(self, status_sink: StatusCallback | None = None) -> None:
        """Start connecting in the background; status changes go to ``status_sink``."""
        if status_sink is not None and status_sink not in self.status_bus.subscribers:
            self.status_bus.subscribe(status_sink)
        if self._client is not None:
            logger.warning(f"Transport already attached to {self.broker_url}; ignoring connect()")
            return

        self._set_status(ConnectionStatus.CONNECTING.value)
        client_id = f"{self.config.client_id_prefix}{secrets.token_hex(3)}"
        client = self._client_factory(client_id)
        client.on_connect = self._on_connect
        client.on_connect_fail = self._on_connect_fail
        client.on_disconnect = self._on_disconnect
        self._client = client
        self._connected = False

        logger.info(f"Attempting connection to {self.broker_url} as {client_id}")
        try:
            client.connect_async(self.config.host, self.config.port, keepalive=self.config.keepalive)
            client.loop_start()
        except (OSError, ValueError) as e:
            logger.error(f"MQTT connection setup failed: {e}")
            self._client = None
            self._set_status(ConnectionStatus.ERROR.with_detail(str(e)))

    def publish(self, payload: Any, topic: str | None = None) -> str | None:
        """Serialize and send ``payload``; returns the sent text, or None when nothing was sent."""
        client = self._client
        if client is None or not self._connected:
            self.dropped += 1
            logger.debug(f"Transport {self.status}; dropping message")
            return None

        destination = topic or self.config.topic
        try:
            message = serialize_payload(payload)
            info = client.publish(destination, message, qos=self.config.qos, retain=False)
        except (TypeError, ValueError, OSError, RuntimeError) as e:
            logger.error(f"Publish error on {destination}: {type(e).__name__}: {e}")
            self.dropped += 1
            return None

        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"Publish error on {destination}: {mqtt.error_string(info.rc)}")
            self.dropped += 1
            return None
        self.sent += 1
        return message

    def disconnect(self) -> None:
        """
        Close the connection and stop the network loop. Safe to call repeatedly.

        Blocks while paho's network thread is joined (at most one select cycle).
        """
        client = self._client
        if client is None:
            if self.status != ConnectionStatus.DISCONNECTED.value:
                self._set_status(ConnectionStatus.DISCONNECTED.value)
            return
        # Detach first so late callbacks from this client are ignored.
        self._client = None
        self._connected = False
        try:
            client.disconnect()
        except (OSError, ValueError) as e:
            logger.warning(f"Error while disconnecting from {self.broker_url}: {e}")
        finally:
            client.loop_stop()
        logger.info(f"Disconnected from {self.broker_url}")
        self._set_status(ConnectionStatus.DISCONNECTED.value)

    # paho callbacks, invoked on the network thread

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if client is not self._client:
            return
        if getattr(reason_code, "is_failure", False):
            self._connected = False
            logger.error(f"MQTT Connection Error: {reason_code}")
            self._set_status(ConnectionStatus.ERROR.with_detail(str(reason_code)))
            return
        self._connected = True
        logger.info(f"Connected to MQTT broker at {self.broker_url}")
        self._set_status(ConnectionStatus.CONNECTED.value)

    def _on_connect_fail(self, client, userdata):
        if client is not self._client:
            return
        self._connected = False
        detail = f"could not reach {self.broker_url}"
        logger.error(f"MQTT Connection Error: {detail}")
        self._set_status(ConnectionStatus.ERROR.with_detail(detail))

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        if client is not self._client:
            return
        was_connected = self._connected
        self._connected = False
        if was_connected:
            logger.warning(f"Lost connection to {self.broker_url}: {reason_code}")
            self._set_status(ConnectionStatus.DISCONNECTED.value)
        elif getattr(reason_code, "is_failure", False):
            self._set_status(ConnectionStatus.ERROR.with_detail(str(reason_code)))


class NullTransport:
    """Transport for offline runs: never connects, drops every message."""

    def __init__(self):
        self.status_bus = StatusBus()
        self.dropped = 0

    @property
    def status(self) -> str:
        return self.status_bus.last_status or ConnectionStatus.DISCONNECTED.value

    def _set_status(self, status: str) -> None:
        self.status_bus.publish(status)

    def connect(self, status_sink: StatusCallback | None = None) -> None:
        if status_sink is not None and status_sink not in self.status_bus.subscribers:
            self.status_bus.subscribe(status_sink)
        self._set_status(ConnectionStatus.CONNECTING.value)
        self._set_status(ConnectionStatus.DISCONNECTED.value)

    def publish(self, payload: Any, topic: str | None = None) -> str | None:
        self.dropped += 1
        return None

    def disconnect(self) -> None:
        if self.status != ConnectionStatus.DISCONNECTED.value:
            self._set_status(ConnectionStatus.DISCONNECTED.value)
