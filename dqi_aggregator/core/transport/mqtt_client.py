"""Enlace MQTT hacia la pasarela de radio de la estación base."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import paho.mqtt.client as mqtt

from ..adapters.radio_adapter import RadioAdapter
from ..domain.errors import TransportError
from .base import Transport

logger = logging.getLogger(__name__)


class MQTTTransport(Transport):
    """Cliente MQTT de la pasarela.

    El enlace de radio es solo broadcast: todo lo que baja va a un único
    topic y cada payload lleva su `sensorId`. Lo que sube llega por
    `<prefix>/up/<tipo>`.

    paho entrega los mensajes en su hilo de red; `broadcast` puede llamarse
    desde ese hilo (ACK/Feedback en respuesta) o desde cualquier otro.
    """

    def __init__(
        self,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: str = "dqi-aggregator",
        topic_prefix: str = "wsn",
        adapter: Optional[RadioAdapter] = None,
        connect_timeout: float = 5.0,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.client_id = f"{client_id}-{int(time.time())}"
        self.topic_prefix = topic_prefix.rstrip("/")
        self.connect_timeout = connect_timeout

        self._adapter = adapter if adapter is not None else RadioAdapter()
        self._client: Optional[mqtt.Client] = None
        # Set por _on_connect (también tras reconexión), clear por _on_disconnect
        self._link_up = threading.Event()
        self._message_handler: Optional[Callable[[str, bytes], None]] = None

    @property
    def uplink_topic(self) -> str:
        return f"{self.topic_prefix}/up/+"

    @property
    def broadcast_topic(self) -> str:
        return f"{self.topic_prefix}/down/broadcast"

    def set_message_handler(self, handler: Callable[[str, bytes], None]):
        self._message_handler = handler

    def connect(self) -> bool:
        """Abre el enlace y espera al CONNACK hasta `connect_timeout` segundos."""
        client = mqtt.Client(
            client_id=self.client_id,
            protocol=mqtt.MQTTv311,
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        )
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        if self.username and self.password:
            client.username_pw_set(self.username, self.password)
        # paho reintenta solo; el subscribe se repite en cada _on_connect
        client.reconnect_delay_set(min_delay=1, max_delay=30)

        self._client = client
        self._link_up.clear()

        logger.info("[MQTT] Connecting to %s:%d", self.broker_host, self.broker_port)
        try:
            client.connect(self.broker_host, self.broker_port, keepalive=60)
        except OSError as e:
            logger.error("[MQTT] Broker unreachable at %s:%d: %s", self.broker_host, self.broker_port, e)
            return False

        client.loop_start()
        if self._link_up.wait(self.connect_timeout):
            return True

        logger.error("[MQTT] No CONNACK after %.1fs", self.connect_timeout)
        client.loop_stop()
        return False

    def disconnect(self):
        client = self._client
        if client is None:
            return
        client.disconnect()
        client.loop_stop()
        self._link_up.clear()

    def broadcast(self, message) -> None:
        client = self._client
        if client is None or not self.is_connected():
            raise TransportError("MQTT link not connected")

        payload = self._adapter.encode(message)
        # QoS 0: el protocolo no garantiza entrega, el nodo reintenta
        info = client.publish(self.broadcast_topic, payload, qos=0)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"publish failed: {mqtt.error_string(info.rc)}")

    def is_connected(self) -> bool:
        return self._link_up.is_set()

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error("[MQTT] Broker refused connection: %s", reason_code)
            return

        client.subscribe(self.uplink_topic, qos=0)
        self._link_up.set()
        logger.info("[MQTT] Link up, listening on %s", self.uplink_topic)

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        self._link_up.clear()
        if reason_code.is_failure:
            logger.warning("[MQTT] Link lost (%s), paho will reconnect", reason_code)
        else:
            logger.info("[MQTT] Link closed")

    def _on_message(self, client, userdata, msg):
        if self._message_handler is not None:
            self._message_handler(msg.topic, msg.payload)
