"""Perfil por nodo: serie temporal dispersa, detector de huecos y contadores.

FUENTE ÚNICA DE VERDAD del estado de calidad de cada nodo.

Máquina de estados del perfil:
- NEW: creado por el registro, sin lecturas ingeridas
- ACCUMULATING: al menos una lectura ingerida (no hay estado terminal)

REGLA DE DOMINIO CRÍTICA:
`gap_count` es el número de ticks en [0, max_tick] nunca observados. Depende
del CONJUNTO de ticks vistos, no del orden de llegada (la radio reordena).
Un tick ausente NO es un valor cero: la serie es un dict disperso.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .messages import QualityReport, SelfEstimate


class ProfileState(Enum):
    """Estados del perfil."""

    NEW = "NEW"
    ACCUMULATING = "ACCUMULATING"


class IngestOutcome(Enum):
    """Resultado de ingerir un par (valor, tick)."""

    NEW_TICK = "new_tick"      # Tick nuevo por encima del cursor
    BACKFILL = "backfill"      # Tick tardío que rellena un hueco ya contado
    OVERWRITE = "overwrite"    # Tick repetido, last-write-wins


@dataclass
class SensorProfile:
    """Estado de un nodo. Un único escritor lógico a la vez (ver `lock`)."""

    node_id: int

    # tick -> último valor registrado
    series: Dict[int, float] = field(default_factory=dict)
    expected_tick_cursor: int = -1

    received_count: int = 0
    gap_count: int = 0
    priority_received_count: int = 0
    backfill_count: int = 0
    duplicate_tick_count: int = 0

    last_self_reported: Optional[QualityReport] = None
    last_self_estimate: Optional[SelfEstimate] = None

    window_index: int = 0
    skipped_window_count: int = 0
    last_ack_msg_id: Optional[int] = None

    state: ProfileState = ProfileState.NEW
    created_at: float = field(default_factory=time.time)
    last_seen_at: float = field(default_factory=time.time)

    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    # Serializa el envío de Feedback del nodo entre mensajes concurrentes
    send_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def ingest_reading(self, value: float, tick: int, is_priority: bool = False) -> IngestOutcome:
        """Registra una lectura en `tick`.

        - Tick ya presente: se sobrescribe el valor, contadores intactos.
        - Tick por encima del cursor: cada tick ausente intermedio cuenta como hueco.
        - Tick por debajo del cursor y ausente: rellena un hueco ya contado.
        """
        self.last_seen_at = time.time()
        self.state = ProfileState.ACCUMULATING

        if tick in self.series:
            self.series[tick] = value
            self.duplicate_tick_count += 1
            return IngestOutcome.OVERWRITE

        if tick > self.expected_tick_cursor:
            # Ningún tick por encima del cursor puede estar presente
            self.gap_count += tick - self.expected_tick_cursor - 1
            self.expected_tick_cursor = tick
            outcome = IngestOutcome.NEW_TICK
        else:
            self.gap_count -= 1
            self.backfill_count += 1
            outcome = IngestOutcome.BACKFILL

        self.series[tick] = value
        self.received_count += 1
        if is_priority:
            self.priority_received_count += 1
        return outcome

    def ingest_quality_report(self, report: QualityReport) -> None:
        """Guarda el resumen del nodo tal cual. No toca serie ni contadores."""
        self.last_seen_at = time.time()
        self.last_self_reported = report

    def record_self_estimate(self, estimate: SelfEstimate) -> None:
        self.last_seen_at = time.time()
        self.last_self_estimate = estimate

    def note_ack(self, msg_id: int) -> bool:
        """Registra el ACK enviado. Devuelve True si es una re-entrega."""
        redelivery = self.last_ack_msg_id == msg_id
        self.last_ack_msg_id = msg_id
        return redelivery

    @property
    def observed_span(self) -> int:
        return self.received_count + self.gap_count

    @property
    def max_tick(self) -> Optional[int]:
        return self.expected_tick_cursor if self.expected_tick_cursor >= 0 else None

    def chart_points(self) -> List[Tuple[int, float]]:
        """Pares (tick, valor) ordenados; los ticks ausentes no se rellenan."""
        return sorted(self.series.items())

    def cross_check(self) -> Optional[dict]:
        """Compara el último resumen del nodo con lo observado en su rango."""
        report = self.last_self_reported
        if report is None:
            return None

        # Solo cuenta como faltante lo que ya quedó por debajo del cursor
        seen_end = min(report.end_tick, self.expected_tick_cursor)
        span = max(0, seen_end - report.start_tick + 1)
        observed = sum(1 for t in self.series if report.start_tick <= t <= report.end_tick)
        return {
            "msg_id": report.msg_id,
            "start_tick": report.start_tick,
            "end_tick": report.end_tick,
            "reported_values": len(report.values),
            "observed_in_range": observed,
            "missing_in_range": span - observed,
            "reported_priority_count": report.priority_count,
            "priority_received_count": self.priority_received_count,
        }

    def snapshot(self) -> dict:
        """Vista plana para diagnóstico."""
        estimate = self.last_self_estimate
        return {
            "node_id": self.node_id,
            "state": self.state.value,
            "received_count": self.received_count,
            "gap_count": self.gap_count,
            "priority_received_count": self.priority_received_count,
            "backfill_count": self.backfill_count,
            "duplicate_tick_count": self.duplicate_tick_count,
            "expected_tick_cursor": self.expected_tick_cursor,
            "window_index": self.window_index,
            "skipped_window_count": self.skipped_window_count,
            "last_ack_msg_id": self.last_ack_msg_id,
            "series_size": len(self.series),
            "created_at": self.created_at,
            "last_seen_at": self.last_seen_at,
            "cross_check": self.cross_check(),
            "self_estimate": {
                "estimated_dqi": estimate.estimated_dqi,
                "estimated_drop_rate": estimate.estimated_drop_rate,
                "counters": list(estimate.counters),
            } if estimate else None,
        }
