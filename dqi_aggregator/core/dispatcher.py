"""Dispatcher: enruta mensajes de los nodos, confirma y cierra el lazo de feedback.

Reglas por tipo:
- QualityReport → ACK{REPORT_ACK} siempre (aunque sea duplicado) + guardar resumen
- Reading con id reservado (3000) → eco de auto-estimación, solo diagnóstico
- Reading prioritario (tag=1) → ACK{READING_ACK}
- Reading → ingerir cada (valor, tick) y consultar el scheduler tras cada par
- Acknowledgment desde un nodo → no-op

GARANTÍAS:
- Un mensaje malformado se rechaza antes de la ingesta, sin ACK
- Un fallo de envío se loguea y no aborta el procesamiento
- Un único escritor por perfil (lock del perfil)
- El Feedback de un nodo sale en orden de ventana, también entre mensajes
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional

from .domain.errors import MalformedMessageError, TransportError
from .domain.messages import (
    SELF_ESTIMATE_MSG_ID,
    Acknowledgment,
    AckKind,
    Feedback,
    QualityReport,
    Reading,
    SelfEstimate,
)
from .monitoring import metrics
from .monitoring.stats import Stats
from .registry import ProfileRegistry
from .scheduler import FeedbackScheduler
from .transport.base import Transport

logger = logging.getLogger(__name__)


class Dispatcher:
    """Enrutador de mensajes entrantes.

    Uso:
        dispatcher = Dispatcher(transport)
        dispatcher.handle(Reading(node_id=7, msg_id=1, tag=1, values=(10, 20), ticks=(0, 1)))
    """

    def __init__(
        self,
        transport: Transport,
        registry: Optional[ProfileRegistry] = None,
        scheduler: Optional[FeedbackScheduler] = None,
        self_estimate_msg_id: int = SELF_ESTIMATE_MSG_ID,
        stats: Optional[Stats] = None,
    ):
        self._transport = transport
        self._registry = registry if registry is not None else ProfileRegistry()
        self._scheduler = scheduler if scheduler is not None else FeedbackScheduler()
        self._self_estimate_msg_id = self_estimate_msg_id
        self._stats = stats if stats is not None else Stats()

    @property
    def registry(self) -> ProfileRegistry:
        return self._registry

    @property
    def stats(self) -> Stats:
        return self._stats

    def handle(self, message) -> bool:
        """Procesa un mensaje de dominio.

        Returns:
            True si se procesó, False si se rechazó
        """
        self._stats.incr(received=1)
        self._stats.last_message_at = time.time()
        kind = getattr(message, "kind", None)
        kind_label = kind.value if kind is not None else type(message).__name__

        try:
            if isinstance(message, QualityReport):
                self._on_quality_report(message)
            elif isinstance(message, Reading):
                self._on_reading(message)
            elif isinstance(message, SelfEstimate):
                self._on_self_estimate(message)
            elif isinstance(message, Acknowledgment):
                self._on_upstream_ack(message)
            else:
                logger.warning("[DISPATCH] Unsupported message type: %s", type(message).__name__)
                self._stats.incr(failed=1)
                metrics.MESSAGES_HANDLED.labels(kind=kind_label, status="failed").inc()
                return False
        except MalformedMessageError as e:
            logger.warning("[DISPATCH] Malformed %s rejected: %s", kind_label, e)
            self._stats.incr(malformed=1)
            metrics.MESSAGES_HANDLED.labels(kind=kind_label, status="malformed").inc()
            return False

        self._stats.incr(processed=1)
        metrics.MESSAGES_HANDLED.labels(kind=kind_label, status="processed").inc()
        return True

    # ------------------------------------------------------------------
    # Reglas por tipo
    # ------------------------------------------------------------------

    def _on_quality_report(self, report: QualityReport) -> None:
        report.validate()
        profile = self._get_profile(report.node_id)

        logger.debug(
            "[DISPATCH] Quality report node=%d msg=%d priority_count=%d range=[%d, %d] values=%d",
            report.node_id,
            report.msg_id,
            report.priority_count,
            report.start_tick,
            report.end_tick,
            len(report.values),
        )

        self._send_ack(report.node_id, report.msg_id, AckKind.REPORT_ACK)

        with profile.lock:
            if profile.note_ack(report.msg_id):
                logger.debug("[DISPATCH] Redelivered report node=%d msg=%d", report.node_id, report.msg_id)
            profile.ingest_quality_report(report)

    def _on_reading(self, reading: Reading) -> None:
        if reading.msg_id == self._self_estimate_msg_id:
            self._on_self_estimate(SelfEstimate.from_reading(reading))
            return

        reading.validate()
        profile = self._get_profile(reading.node_id)

        if reading.is_priority:
            self._send_ack(reading.node_id, reading.msg_id, AckKind.READING_ACK)

        feedback: List[Feedback] = []
        with profile.lock:
            if reading.is_priority and profile.note_ack(reading.msg_id):
                logger.debug("[DISPATCH] Redelivered reading node=%d msg=%d", reading.node_id, reading.msg_id)

            for value, tick in reading.pairs():
                profile.ingest_reading(value, tick, reading.is_priority)
                feedback.extend(self._scheduler.on_reading(profile, tick))

            if not feedback:
                return
            # Se toma antes de soltar el perfil: el orden de cierre de ventanas
            # se conserva también entre mensajes del mismo nodo
            profile.send_lock.acquire()

        try:
            for fb in feedback:
                self._broadcast(fb)
        finally:
            profile.send_lock.release()

    def _on_self_estimate(self, estimate: SelfEstimate) -> None:
        profile = self._get_profile(estimate.node_id)
        with profile.lock:
            profile.record_self_estimate(estimate)

        self._stats.incr(self_estimates=1)
        logger.info(
            "[DISPATCH] Node self-estimate node=%d dqi=%.4f drop_rate=%.4f counters=%s",
            estimate.node_id,
            estimate.estimated_dqi,
            estimate.estimated_drop_rate,
            list(estimate.counters),
        )

    def _on_upstream_ack(self, ack: Acknowledgment) -> None:
        # Reservado: el protocolo no requiere procesar ACKs de los nodos
        self._stats.incr(upstream_acks=1)

    # ------------------------------------------------------------------
    # Envío
    # ------------------------------------------------------------------

    def _get_profile(self, node_id: int):
        profile = self._registry.get_or_create(node_id)
        metrics.NODES_TRACKED.set(len(self._registry))
        return profile

    def _send_ack(self, node_id: int, msg_id: int, ack_kind: AckKind) -> bool:
        return self._broadcast(Acknowledgment(node_id=node_id, msg_id=msg_id, ack_kind=ack_kind))

    def _broadcast(self, message) -> bool:
        """Envía por broadcast. Los fallos se loguean y se tragan."""
        kind = message.kind.value
        try:
            self._transport.broadcast(message)
        except (TransportError, OSError) as e:
            logger.error("[DISPATCH] Broadcast of %s to node=%d failed: %s", kind, message.node_id, e)
            self._stats.incr(send_failures=1)
            metrics.SEND_FAILURES.labels(kind=kind).inc()
            return False

        if isinstance(message, Acknowledgment):
            self._stats.incr(acks_sent=1)
            metrics.ACKS_SENT.labels(ack_kind=message.ack_kind.name.lower()).inc()
        else:
            self._stats.incr(feedback_sent=1)
            metrics.FEEDBACK_SENT.inc()
        return True
