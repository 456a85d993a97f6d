"""Health checks del agregador."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional


@dataclass
class HealthStatus:
    """Estado de salud del sistema."""
    healthy: bool
    transport_connected: bool
    nodes_tracked: int
    messages_processed: int
    messages_failed: int
    seconds_since_last_message: Optional[float]

    def to_dict(self) -> dict:
        return {
            "healthy": self.healthy,
            "transport_connected": self.transport_connected,
            "nodes_tracked": self.nodes_tracked,
            "messages_processed": self.messages_processed,
            "messages_failed": self.messages_failed,
            "seconds_since_last_message": self.seconds_since_last_message,
        }


class HealthChecker:
    """Evalúa la salud a partir del enlace y de las estadísticas."""

    def __init__(self, stale_after_seconds: float = 300.0):
        self._stale_after = stale_after_seconds

    def get_status(
        self,
        transport_connected: bool,
        nodes_tracked: int,
        processed: int,
        failed: int,
        last_message_at: float,
    ) -> HealthStatus:
        """Obtiene estado de salud completo."""
        since_last = time.time() - last_message_at if last_message_at else None
        # Un enlace mudo durante mucho tiempo se considera degradado
        stale = since_last is not None and since_last > self._stale_after

        return HealthStatus(
            healthy=transport_connected and not stale,
            transport_connected=transport_connected,
            nodes_tracked=nodes_tracked,
            messages_processed=processed,
            messages_failed=failed,
            seconds_since_last_message=round(since_last, 3) if since_last is not None else None,
        )
