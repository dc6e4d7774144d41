"""Internal MQTT broker address parsing and subscription runtime."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from openchirp_pubsub._constants import MQTT_QOS
from openchirp_pubsub.config import BridgeConfig
from openchirp_pubsub.exceptions import BridgeConfigError, BridgeConnectionError

_PLAIN_SCHEMES = frozenset({"tcp", "mqtt"})
_TLS_SCHEMES = frozenset({"tls", "ssl", "mqtts"})
_DEFAULT_PORTS = {False: 1883, True: 8883}

MessageHandler = Callable[[str, bytes], object]


@dataclass(frozen=True)
class BrokerAddress:
    """Where and how to reach the MQTT broker."""

    host: str
    port: int
    tls: bool


def parse_broker_uri(raw_uri: str) -> BrokerAddress:
    """Parse ``scheme://host:port`` into a :class:`BrokerAddress`.

    A missing scheme means plain TCP; a missing port means the scheme's
    default (1883 plain, 8883 TLS).
    """
    value = raw_uri.strip()
    if not value:
        raise BridgeConfigError("MQTT server URI is empty")

    scheme = "tcp"
    if "://" in value:
        scheme, value = value.split("://", 1)
        scheme = scheme.lower()
    if scheme in _TLS_SCHEMES:
        tls = True
    elif scheme in _PLAIN_SCHEMES:
        tls = False
    else:
        raise BridgeConfigError(f"Unsupported MQTT scheme {scheme!r} in {raw_uri!r}")

    if "/" in value:
        value = value.split("/", 1)[0]

    host, sep, maybe_port = value.rpartition(":")
    if not sep:
        host, port = value, _DEFAULT_PORTS[tls]
    elif maybe_port.isdigit():
        port = int(maybe_port)
    else:
        raise BridgeConfigError(f"MQTT server URI has an invalid port: {raw_uri!r}")
    if not host:
        raise BridgeConfigError(f"MQTT server URI has no host: {raw_uri!r}")
    return BrokerAddress(host=host, port=port, tls=tls)


class BridgeMqttRuntime:
    """Threaded paho-mqtt runtime that hands every message to a callback.

    The callback runs on paho's network thread, one message at a time.
    """

    def __init__(
        self,
        *,
        broker: BrokerAddress,
        username: str = "",
        password: str = "",
        client_id: str = "",
        keepalive: int = 60,
        connect_timeout: float = 10.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._broker = broker
        self._username = username
        self._password = password
        self._client_id = client_id
        self._keepalive = keepalive
        self._connect_timeout = connect_timeout
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @classmethod
    def from_config(cls, config: BridgeConfig, *, logger: logging.Logger | None = None) -> BridgeMqttRuntime:
        return cls(
            broker=parse_broker_uri(config.mqtt_server),
            username=config.mqtt_user,
            password=config.mqtt_pass,
            client_id=config.mqtt_client_id,
            keepalive=config.mqtt_keepalive,
            connect_timeout=config.mqtt_connect_timeout,
            logger=logger,
        )

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def start(self, topic: str, on_message: MessageHandler) -> None:
        """Connect, wait for the broker to accept us, and subscribe to *topic*.

        Raises
        ------
        BridgeConnectionError
            If the broker cannot be reached, refuses the connection, or does
            not answer within the connect timeout.
        """
        self.stop()
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s tls=%s topic=%s",
            self._broker.host,
            self._broker.port,
            self._broker.tls,
            topic,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        if self._username:
            client.username_pw_set(self._username, self._password or None)
        if self._broker.tls:
            client.tls_set()

        self._topic = topic
        connected = threading.Event()
        connect_result: dict[str, Any] = {}

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                connect_result.setdefault("error", reason_code)
                connected.set()
                return
            self._logger.debug("MQTT connected successfully reason=%s", reason_code)
            # Clean sessions lose subscriptions; subscribe on every (re)connect.
            if self._topic:
                self._logger.debug("MQTT subscribing topic=%s qos=%s", self._topic, MQTT_QOS)
                c.subscribe(self._topic, qos=MQTT_QOS)
            connected.set()

        def on_subscribe(
            _c: mqtt.Client,
            _userdata: Any,
            _mid: int,
            reason_codes: list[Any],
            _properties: Any,
        ) -> None:
            for code in reason_codes:
                if code.is_failure:
                    self._logger.error("MQTT subscribe rejected topic=%s reason=%s", self._topic, code)
                else:
                    self._logger.debug("MQTT subscribed topic=%s granted=%s", self._topic, code)

        def on_message_cb(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                on_message(msg.topic, msg.payload)
            except Exception:
                # Keep the network thread alive for the next message.
                self._logger.exception("MQTT message handler failed topic=%s", msg.topic)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.warning("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_subscribe = on_subscribe
        client.on_message = on_message_cb
        client.on_disconnect = on_disconnect

        try:
            client.connect(self._broker.host, self._broker.port, keepalive=self._keepalive)
        except (OSError, ValueError) as exc:
            raise BridgeConnectionError(f"Failed to connect to MQTT broker: {exc}", service="mqtt") from exc
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

        if not connected.wait(self._connect_timeout):
            self.stop()
            raise BridgeConnectionError(
                f"Failed to connect to MQTT broker: no answer within {self._connect_timeout}s",
                service="mqtt",
            )
        if "error" in connect_result:
            self.stop()
            raise BridgeConnectionError(
                f"Failed to connect to MQTT broker: {connect_result['error']}",
                service="mqtt",
            )

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
