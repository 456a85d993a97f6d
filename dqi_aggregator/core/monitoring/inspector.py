"""Vistas de solo lectura sobre los perfiles, para diagnóstico y gráfico en vivo.

Nunca crea perfiles: consultar un nodo desconocido devuelve None.
"""

from __future__ import annotations

from typing import List, Optional

from ..estimator import DQIEstimator
from ..registry import ProfileRegistry


class ProfileInspector:
    """Toma snapshots consistentes bajo el lock de cada perfil."""

    def __init__(self, registry: ProfileRegistry, estimator: Optional[DQIEstimator] = None):
        self._registry = registry
        self._estimator = estimator if estimator is not None else DQIEstimator()

    def node_snapshot(self, node_id: int) -> Optional[dict]:
        profile = self._registry.get(node_id)
        if profile is None:
            return None

        with profile.lock:
            snapshot = profile.snapshot()
            snapshot["estimate"] = self._estimator.estimate(profile).to_dict()
        return snapshot

    def node_series(self, node_id: int, since_tick: int = 0) -> Optional[List[dict]]:
        """Puntos (tick, valor) desde `since_tick`, ordenados por tick."""
        profile = self._registry.get(node_id)
        if profile is None:
            return None

        with profile.lock:
            points = profile.chart_points()
        return [{"tick": t, "value": v} for t, v in points if t >= since_tick]

    def summary(self) -> List[dict]:
        """Resumen compacto de todos los nodos."""
        result = []
        for node_id in self._registry.node_ids():
            profile = self._registry.get(node_id)
            with profile.lock:
                estimate = self._estimator.estimate(profile)
                result.append({
                    "node_id": node_id,
                    "state": profile.state.value,
                    "received_count": profile.received_count,
                    "gap_count": profile.gap_count,
                    "window_index": profile.window_index,
                    "estimated_dqi": round(estimate.estimated_dqi, 4),
                    "estimated_drop_rate": round(estimate.estimated_drop_rate, 4),
                })
        return result
