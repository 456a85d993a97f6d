"""Handler de mensajes del enlace."""

from __future__ import annotations

import logging
from typing import Optional

import orjson

from ..adapters.radio_adapter import RadioAdapter
from ..dispatcher import Dispatcher
from ..domain.errors import MalformedMessageError
from ..monitoring import metrics

logger = logging.getLogger(__name__)


class MessageHandler:
    """Maneja mensajes MQTT y los entrega al Dispatcher.

    Responsabilidades:
    - Parseo de JSON
    - Tipo de mensaje a partir del topic (`<prefix>/up/<tipo>`) o del campo `type`
    - Adaptación payload → dominio
    - Aislamiento: un mensaje roto nunca afecta a los demás nodos
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        adapter: Optional[RadioAdapter] = None,
    ):
        self._dispatcher = dispatcher
        self._adapter = adapter if adapter is not None else RadioAdapter()

    def handle(self, topic: str, payload: bytes):
        """Procesa un mensaje MQTT."""
        stats = self._dispatcher.stats

        try:
            data = self._parse_json(payload, topic)
            if data is None:
                return

            kind = data.get("type") or topic.rsplit("/", 1)[-1]
            message = self._adapter.to_message(kind, data)
            self._dispatcher.handle(message)

            # Log periódico
            if stats.processed and stats.processed % 100 == 0:
                logger.info("[HANDLER] %s", stats)

        except MalformedMessageError as e:
            logger.warning("[HANDLER] Rejected payload on %s: %s", topic, e)
            stats.incr(received=1, malformed=1)
            metrics.MESSAGES_HANDLED.labels(kind="unparsed", status="malformed").inc()
        except Exception as e:
            logger.exception("[HANDLER] Error on %s: %s", topic, e)
            stats.incr(failed=1)
            metrics.MESSAGES_HANDLED.labels(kind="unparsed", status="failed").inc()

    def _parse_json(self, payload: bytes, topic: str) -> Optional[dict]:
        """Parsea payload JSON."""
        stats = self._dispatcher.stats
        try:
            data = orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            logger.warning("[HANDLER] Invalid JSON: %s (topic=%s)", e, topic)
            stats.incr(received=1, malformed=1)
            return None

        if not isinstance(data, dict):
            logger.warning("[HANDLER] Payload is not an object (topic=%s)", topic)
            stats.incr(received=1, malformed=1)
            return None
        return data
