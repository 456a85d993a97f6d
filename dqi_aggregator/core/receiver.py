"""Receptor del agregador - Punto de entrada principal del core.

Ensambla los componentes:
- transport/   → Enlace MQTT con la pasarela de radio
- adapters/    → Conversión payload → dominio
- dispatcher   → Enrutado, ACKs, ingesta y feedback
- registry     → Perfiles por nodo
- monitoring/  → Stats, health y diagnóstico
"""

from __future__ import annotations

import logging
from typing import Optional

from ..common.config import Settings, get_settings
from .adapters.radio_adapter import RadioAdapter
from .dispatcher import Dispatcher
from .estimator import DQIEstimator
from .monitoring.health import HealthChecker
from .monitoring.inspector import ProfileInspector
from .registry import ProfileRegistry
from .scheduler import FeedbackScheduler
from .transport.base import Transport
from .transport.message_handler import MessageHandler
from .transport.mqtt_client import MQTTTransport

logger = logging.getLogger(__name__)


class AggregatorReceiver:
    """Agregador de estación base con arquitectura modular.

    Componentes:
    - MQTTTransport: conexión con la pasarela
    - MessageHandler: parseo y delegación
    - Dispatcher: reglas del protocolo
    - ProfileInspector: vistas de diagnóstico
    """

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[Transport] = None):
        self._settings = settings if settings is not None else get_settings()
        adapter = RadioAdapter()

        self._transport = transport if transport is not None else MQTTTransport(
            broker_host=self._settings.mqtt_host,
            broker_port=self._settings.mqtt_port,
            username=self._settings.mqtt_username,
            password=self._settings.mqtt_password,
            client_id=self._settings.mqtt_client_id,
            topic_prefix=self._settings.topic_prefix,
            adapter=adapter,
        )

        estimator = DQIEstimator(self._settings.estimator)
        self._registry = ProfileRegistry()
        self._dispatcher = Dispatcher(
            self._transport,
            registry=self._registry,
            scheduler=FeedbackScheduler(self._settings.window, estimator),
            self_estimate_msg_id=self._settings.self_estimate_msg_id,
        )
        self._handler = MessageHandler(self._dispatcher, adapter)
        self._inspector = ProfileInspector(self._registry, estimator)
        self._health = HealthChecker()
        self._running = False

    def start(self) -> bool:
        """Inicia el receptor."""
        if isinstance(self._transport, MQTTTransport):
            self._transport.set_message_handler(self._handler.handle)
            if not self._transport.connect():
                logger.error("[RECEIVER] MQTT connection failed")
                return False

        self._running = True
        logger.info(
            "[RECEIVER] Started (window=%d offset=%d self_estimate_id=%d)",
            self._settings.window.size,
            self._settings.window.offset,
            self._settings.self_estimate_msg_id,
        )
        return True

    def stop(self):
        """Detiene el receptor."""
        self._running = False

        if isinstance(self._transport, MQTTTransport):
            self._transport.disconnect()

        logger.info("[RECEIVER] Stopped. %s", self._dispatcher.stats)

    @property
    def handler(self) -> MessageHandler:
        return self._handler

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def inspector(self) -> ProfileInspector:
        return self._inspector

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        return self._transport.is_connected()

    @property
    def stats(self) -> dict:
        """Estadísticas del receptor."""
        return {
            "running": self._running,
            "connected": self.is_connected,
            "nodes_tracked": len(self._registry),
            **self._dispatcher.stats.to_dict(),
        }

    def health_check(self) -> dict:
        """Health check del receptor."""
        stats = self._dispatcher.stats
        status = self._health.get_status(
            transport_connected=self._running and self.is_connected,
            nodes_tracked=len(self._registry),
            processed=stats.processed,
            failed=stats.failed + stats.malformed,
            last_message_at=stats.last_message_at,
        )
        return status.to_dict()


# Singleton
_receiver: Optional[AggregatorReceiver] = None


def get_receiver() -> Optional[AggregatorReceiver]:
    """Obtiene el receptor singleton."""
    return _receiver


def start_receiver(settings: Optional[Settings] = None) -> bool:
    """Inicia el receptor."""
    global _receiver

    if _receiver is not None:
        return _receiver.is_running

    _receiver = AggregatorReceiver(settings)
    return _receiver.start()


def stop_receiver():
    """Detiene el receptor."""
    global _receiver

    if _receiver is not None:
        _receiver.stop()
        _receiver = None
