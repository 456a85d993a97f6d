"""Mensajes de dominio intercambiados con los nodos.

El contenido es independiente de la codificación: el adaptador de radio
convierte payloads del enlace a estos tipos y viceversa.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterator, Tuple

from .errors import MalformedMessageError

# Id de mensaje reservado por el firmware para el eco de auto-estimación
SELF_ESTIMATE_MSG_ID = 3000

# Escala de punto fijo usada por el firmware en el eco (x10000)
SELF_ESTIMATE_SCALE = 10000.0


class MessageKind(Enum):
    """Tipos de mensaje del protocolo."""
    READING = "reading"
    QUALITY_REPORT = "quality"
    ACKNOWLEDGMENT = "ack"
    SELF_ESTIMATE = "estimate"
    FEEDBACK = "feedback"


class AckKind(IntEnum):
    """Tipo de ACK (valor `msgType` en el enlace)."""
    REPORT_ACK = 0
    READING_ACK = 1


@dataclass(frozen=True)
class Reading:
    """Lote de lecturas de un nodo: arrays paralelos valor/tick."""
    node_id: int
    msg_id: int
    tag: int
    values: Tuple[float, ...]
    ticks: Tuple[int, ...]

    kind = MessageKind.READING

    @property
    def is_priority(self) -> bool:
        return self.tag == 1

    def validate(self) -> None:
        """Lanza MalformedMessageError si el lote no puede ingerirse."""
        if len(self.values) != len(self.ticks):
            raise MalformedMessageError(
                f"values/ticks length mismatch ({len(self.values)} != {len(self.ticks)})",
                self.node_id,
                self.msg_id,
            )
        if self.tag not in (0, 1):
            raise MalformedMessageError(f"invalid priority tag {self.tag}", self.node_id, self.msg_id)
        for tick in self.ticks:
            if tick < 0:
                raise MalformedMessageError(f"negative tick {tick}", self.node_id, self.msg_id)

    def pairs(self) -> Iterator[Tuple[float, int]]:
        """Pares (valor, tick) en el orden del array."""
        return zip(self.values, self.ticks)


@dataclass(frozen=True)
class QualityReport:
    """Resumen de calidad auto-calculado por el nodo."""
    node_id: int
    msg_id: int
    priority_count: int
    start_tick: int
    end_tick: int
    values: Tuple[float, ...] = ()

    kind = MessageKind.QUALITY_REPORT

    def validate(self) -> None:
        if self.end_tick < self.start_tick:
            raise MalformedMessageError(
                f"end tick {self.end_tick} before start tick {self.start_tick}",
                self.node_id,
                self.msg_id,
            )
        if self.start_tick < 0:
            raise MalformedMessageError(f"negative start tick {self.start_tick}", self.node_id, self.msg_id)
        if self.priority_count < 0:
            raise MalformedMessageError(
                f"negative priority count {self.priority_count}", self.node_id, self.msg_id
            )


@dataclass(frozen=True)
class Acknowledgment:
    node_id: int
    msg_id: int
    ack_kind: AckKind

    kind = MessageKind.ACKNOWLEDGMENT


@dataclass(frozen=True)
class SelfEstimate:
    """Estimación propia del nodo (DQI y pérdida). Solo diagnóstico."""
    node_id: int
    estimated_dqi: float
    estimated_drop_rate: float
    counters: Tuple[int, ...] = ()
    msg_id: int = SELF_ESTIMATE_MSG_ID

    kind = MessageKind.SELF_ESTIMATE

    @classmethod
    def from_reading(cls, reading: Reading) -> "SelfEstimate":
        """Decodifica el formato heredado del firmware (Reading con id 3000).

        values[0] = DQI x10000, ticks[0] = pérdida x10000, ticks[1..3] = contadores.
        """
        if not reading.values or not reading.ticks:
            raise MalformedMessageError("empty self-estimate echo", reading.node_id, reading.msg_id)
        return cls(
            node_id=reading.node_id,
            estimated_dqi=reading.values[0] / SELF_ESTIMATE_SCALE,
            estimated_drop_rate=reading.ticks[0] / SELF_ESTIMATE_SCALE,
            counters=tuple(int(t) for t in reading.ticks[1:4]),
            msg_id=reading.msg_id,
        )


@dataclass(frozen=True)
class Feedback:
    """Estimación calculada por el agregador al cerrar una ventana."""
    node_id: int
    estimated_dqi: float
    estimated_drop_rate: float
    window_index: int
    window_start: int
    window_end: int

    kind = MessageKind.FEEDBACK
