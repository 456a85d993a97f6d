"""Adaptador enlace de radio ↔ modelo de dominio."""

from __future__ import annotations

import logging
from typing import Union

import orjson
from pydantic import ValidationError

from ..domain.errors import MalformedMessageError
from ..domain.messages import (
    SELF_ESTIMATE_SCALE,
    Acknowledgment,
    AckKind,
    Feedback,
    MessageKind,
    QualityReport,
    Reading,
    SelfEstimate,
)
from ..validation.payload_schemas import (
    AckPayload,
    QualityReportPayload,
    ReadingPayload,
    SelfEstimatePayload,
)

logger = logging.getLogger(__name__)

InboundMessage = Union[Reading, QualityReport, Acknowledgment, SelfEstimate]
OutboundMessage = Union[Acknowledgment, Feedback]


def _to_fixed_point(value: float) -> int:
    return int(round(value * SELF_ESTIMATE_SCALE))


class RadioAdapter:
    """Adapta payloads de la pasarela al dominio y codifica los mensajes salientes.

    Responsabilidades:
    - Validación del payload (pydantic)
    - Conversión a Reading / QualityReport / Acknowledgment / SelfEstimate
    - Codificación JSON de ACK y Feedback
    """

    def to_message(self, kind: Union[MessageKind, str], data: dict) -> InboundMessage:
        """Convierte un payload ya parseado al mensaje de dominio.

        Raises:
            MalformedMessageError: payload que no cumple el esquema
        """
        try:
            kind = MessageKind(kind)
        except ValueError:
            raise MalformedMessageError(f"unknown message kind {kind!r}", data.get("sensorId"))

        try:
            if kind is MessageKind.READING:
                p = ReadingPayload.model_validate(data)
                return Reading(
                    node_id=p.sensor_id,
                    msg_id=p.msg_id,
                    tag=p.tag,
                    values=tuple(p.readings),
                    ticks=tuple(p.times),
                )

            if kind is MessageKind.QUALITY_REPORT:
                p = QualityReportPayload.model_validate(data)
                return QualityReport(
                    node_id=p.sensor_id,
                    msg_id=p.msg_id,
                    priority_count=p.priority_count,
                    start_tick=p.start_id,
                    end_tick=p.end_id,
                    values=tuple(p.values),
                )

            if kind is MessageKind.ACKNOWLEDGMENT:
                p = AckPayload.model_validate(data)
                try:
                    ack_kind = AckKind(p.msg_type)
                except ValueError:
                    raise MalformedMessageError(f"unknown ack type {p.msg_type}", p.sensor_id, p.msg_id)
                return Acknowledgment(node_id=p.sensor_id, msg_id=p.msg_id, ack_kind=ack_kind)

            if kind is MessageKind.SELF_ESTIMATE:
                p = SelfEstimatePayload.model_validate(data)
                return SelfEstimate(
                    node_id=p.sensor_id,
                    estimated_dqi=p.estimated_dqi,
                    estimated_drop_rate=p.estimated_drop_rate,
                    counters=tuple(p.counters),
                )
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise MalformedMessageError(f"invalid {kind.value} payload: {errors}", data.get("sensorId"))

        # FEEDBACK solo viaja hacia los nodos
        raise MalformedMessageError(f"unexpected inbound kind {kind.value}", data.get("sensorId"))

    def to_payload(self, message: OutboundMessage) -> dict:
        """Payload JSON del mensaje saliente (nombres del firmware)."""
        if isinstance(message, Acknowledgment):
            return {
                "type": MessageKind.ACKNOWLEDGMENT.value,
                "sensorId": message.node_id,
                "msgId": message.msg_id,
                "msgType": int(message.ack_kind),
            }

        if isinstance(message, Feedback):
            return {
                "type": MessageKind.FEEDBACK.value,
                "sensorId": message.node_id,
                "estimatedDqi": message.estimated_dqi,
                "estimatedDropRate": message.estimated_drop_rate,
                # Punto fijo x10000 para el firmware
                "dqi": _to_fixed_point(message.estimated_dqi),
                "dropRate": _to_fixed_point(message.estimated_drop_rate),
                "windowIndex": message.window_index,
                "windowStart": message.window_start,
                "windowEnd": message.window_end,
            }

        raise TypeError(f"Cannot encode outbound message {type(message).__name__}")

    def encode(self, message: OutboundMessage) -> bytes:
        return orjson.dumps(self.to_payload(message))
