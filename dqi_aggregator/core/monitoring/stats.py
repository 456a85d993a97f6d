"""Estadísticas de procesamiento."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Stats:
    """Estadísticas de mensajes del agregador."""

    received: int = 0
    processed: int = 0
    failed: int = 0
    malformed: int = 0
    acks_sent: int = 0
    feedback_sent: int = 0
    send_failures: int = 0
    self_estimates: int = 0
    upstream_acks: int = 0
    last_message_at: float = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def incr(self, **counters: int) -> None:
        """Incrementa contadores de forma atómica. Los handlers corren en varios hilos."""
        with self._lock:
            for name, amount in counters.items():
                setattr(self, name, getattr(self, name) + amount)

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} processed={self.processed} failed={self.failed} "
            f"malformed={self.malformed} acks={self.acks_sent} feedback={self.feedback_sent} "
            f"send_failures={self.send_failures}"
        )

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        return {
            "received": self.received,
            "processed": self.processed,
            "failed": self.failed,
            "malformed": self.malformed,
            "acks_sent": self.acks_sent,
            "feedback_sent": self.feedback_sent,
            "send_failures": self.send_failures,
            "self_estimates": self.self_estimates,
            "upstream_acks": self.upstream_acks,
            "last_message_at": self.last_message_at,
            "started_at": self.started_at.isoformat(),
            "success_rate": self._success_rate(),
        }

    def _success_rate(self) -> float:
        """Calcula tasa de éxito."""
        total = self.processed + self.failed + self.malformed
        if total == 0:
            return 1.0
        return self.processed / total
