"""Endpoints de diagnóstico del agregador (solo lectura).

Exponen el estado por nodo que mostraría el gráfico en vivo:
- Contadores de recepción y huecos
- Estimación de DQI / pérdida actual
- Cruce con el último resumen auto-reportado
- Serie (tick, valor) para graficar
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request

router = APIRouter(tags=["diagnostics"])
logger = logging.getLogger(__name__)


def _receiver(request: Request):
    return request.app.state.receiver


@router.get("/health")
def get_health(request: Request):
    """Health check del enlace y del procesamiento."""
    return _receiver(request).health_check()


@router.get("/api/aggregator/stats")
def get_stats(request: Request):
    return _receiver(request).stats


@router.get("/api/aggregator/nodes")
def list_nodes(request: Request):
    """Resumen de todos los nodos observados."""
    return {"nodes": _receiver(request).inspector.summary()}


@router.get("/api/aggregator/nodes/{node_id}")
def get_node(node_id: int, request: Request):
    """Snapshot completo de un nodo.

    Example response:
    ```json
    {
        "node_id": 7,
        "state": "ACCUMULATING",
        "received_count": 3,
        "gap_count": 233,
        "window_index": 1,
        "estimate": {"estimated_dqi": 0.2102, "estimated_drop_rate": 0.9873, ...},
        "cross_check": null,
        "self_estimate": null
    }
    ```
    """
    snapshot = _receiver(request).inspector.node_snapshot(node_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"Node {node_id} not found")
    return snapshot


@router.get("/api/aggregator/nodes/{node_id}/series")
def get_node_series(
    node_id: int,
    request: Request,
    since_tick: int = Query(0, ge=0, description="First tick to include"),
):
    """Puntos (tick, valor) del nodo; los ticks ausentes no aparecen."""
    points = _receiver(request).inspector.node_series(node_id, since_tick=since_tick)
    if points is None:
        raise HTTPException(status_code=404, detail=f"Node {node_id} not found")
    return {"node_id": node_id, "points": points}
